"""
Informations de publication deduites des noms de fichiers et dossiers.

- MediaSource : support d'origine (Blu-ray, DVD, WEB-DL...)
- MovieEdition : edition d'un film (director's cut, version longue...)
"""

import re
from enum import Enum
from pathlib import Path
from typing import Optional

_START = r"[\/\\ _,.()\[\]-]"
_END = r"([\/\\ _,.()\[\]-]|$)"


class MediaSource(Enum):
    """Support d'origine d'une video."""

    UHD_BLURAY = "uhd_bluray"
    BLURAY = "bluray"
    DVD = "dvd"
    HDDVD = "hddvd"
    TV = "tv"
    VHS = "vhs"
    LASERDISC = "laserdisc"
    HDRIP = "hdrip"
    CAM = "cam"
    TS = "ts"
    TC = "tc"
    DVDSCR = "dvdscr"
    R5 = "r5"
    WEBRIP = "webrip"
    WEB_DL = "web_dl"
    STREAM = "stream"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, path: Path | str) -> "MediaSource":
        """
        Deduit le support depuis un chemin.

        Les composants sont examines du dernier vers le premier : le nom du
        fichier prime sur celui du dossier. Un fichier .strm est un flux.

        Args:
            path: Chemin du fichier video (ou nom seul)

        Returns:
            Le support detecte, UNKNOWN sinon
        """
        path = Path(path)
        # Un composant doit contenir un delimiteur avant le motif : un dossier
        # nomme simplement "DVD" ne suffit pas
        for part in reversed(path.parts):
            lowered = part.lower()
            for source, pattern in _SOURCE_PATTERNS:
                if pattern.search(lowered):
                    return source
        if path.suffix.lower() == ".strm":
            return cls.STREAM
        return cls.UNKNOWN


# Les motifs les plus longs d'abord (UHD Blu-ray avant Blu-ray)
_SOURCE_PATTERNS = tuple(
    (source, re.compile(_START + regex + _END))
    for source, regex in (
        (MediaSource.UHD_BLURAY,
         r"(uhd|ultrahd)[ .\-]?(bluray|blueray|bdrip|brrip|dbrip|bd25|bd50|bdmv|blu\-ray)"),
        (MediaSource.BLURAY, r"(bluray|blueray|bdrip|brrip|dbrip|bd25|bd50|bdmv|blu\-ray)"),
        (MediaSource.DVD, r"(dvd|video_ts|dvdrip|dvdr)"),
        (MediaSource.HDDVD, r"(hddvd|hddvdrip)"),
        (MediaSource.TV, r"(tv|hdtv|pdtv|dsr|dtb|dtt|dttv|dtv|hdtvrip|tvrip|dvbrip)"),
        (MediaSource.VHS, r"(vhs|vhsrip)"),
        (MediaSource.LASERDISC, r"(laserdisc|ldrip)"),
        (MediaSource.HDRIP, r"(hdrip)"),
        (MediaSource.CAM, r"(cam)"),
        (MediaSource.TS, r"(ts|telesync|hdts|ht\-ts)"),
        (MediaSource.TC, r"(tc|telecine|hdtc|ht\-tc)"),
        (MediaSource.DVDSCR, r"(dvdscr)"),
        (MediaSource.R5, r"(r5)"),
        (MediaSource.WEBRIP, r"(webrip)"),
        (MediaSource.WEB_DL, r"(web-dl|webdl|web)"),
    )
)


class MovieEdition(Enum):
    """Edition d'un film."""

    NONE = "none"
    DIRECTORS_CUT = "directors_cut"
    EXTENDED = "extended"
    THEATRICAL = "theatrical"
    UNRATED = "unrated"
    UNCUT = "uncut"
    IMAX = "imax"
    REMASTERED = "remastered"
    COLLECTORS = "collectors"
    ULTIMATE = "ultimate"
    FINAL_CUT = "final_cut"
    SPECIAL = "special"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, name: str) -> "MovieEdition":
        """Deduit l'edition depuis un nom de dossier ou de fichier."""
        edition, _ = parse_edition(name)
        return edition


_CUT = r"(Cut|Edition|Version)"

_EDITION_PATTERNS = tuple(
    (edition, re.compile(regex, re.IGNORECASE))
    for edition, regex in (
        (MovieEdition.DIRECTORS_CUT, rf".Director.?s.{_CUT}"),
        (MovieEdition.EXTENDED, rf".Extended.{_CUT}?"),
        (MovieEdition.THEATRICAL, rf".Theatrical.{_CUT}?"),
        (MovieEdition.UNRATED, rf".Unrated.{_CUT}?"),
        (MovieEdition.UNCUT, rf".Uncut.{_CUT}?"),
        (MovieEdition.IMAX, rf"^(IMAX|.*?.IMAX).{_CUT}?"),
        (MovieEdition.REMASTERED, rf".Remastered.{_CUT}?"),
        (MovieEdition.COLLECTORS, rf".Collectors.{_CUT}"),
        (MovieEdition.ULTIMATE, rf".Ultimate.{_CUT}"),
        (MovieEdition.FINAL_CUT, rf".Final.{_CUT}"),
        (MovieEdition.SPECIAL, rf".Special.{_CUT}"),
    )
)

# Convention Plex/Jellyfin : "Film {edition-Version Longue}"
_EDITION_TAG = re.compile(r"\{edition\-(.*?)\}", re.IGNORECASE)


def parse_edition(name: str) -> tuple[MovieEdition, Optional[str]]:
    """
    Deduit l'edition et son libelle eventuel.

    Returns:
        (edition, libelle) ou le libelle n'est renseigne que pour une
        balise {edition-...} qui ne correspond a aucune edition connue
    """
    if not name:
        return MovieEdition.NONE, None

    tag = _EDITION_TAG.search(name)
    if tag:
        label = tag.group(1).strip()
        for edition, pattern in _EDITION_PATTERNS:
            if pattern.search(" " + label):
                return edition, None
        return MovieEdition.CUSTOM, label

    for edition, pattern in _EDITION_PATTERNS:
        if pattern.search(name):
            return edition, None
    return MovieEdition.NONE, None
