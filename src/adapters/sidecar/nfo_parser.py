"""
Lecteur des fichiers NFO (format Kodi) et des XML d'episodes.

Un NFO peut contenir, apres la racine XML, une URL de fiche (IMDB, TMDB) :
le contenu est enveloppe dans un element artificiel avant l'analyse, ce
qui tolere aussi plusieurs <episodedetails> consecutifs (multi-episodes).
En cas d'echec, le texte brut reste disponible pour la recherche
d'identifiants.
"""

import re
from datetime import date
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from loguru import logger

from src.core.entities.library import EntityKind
from src.core.ports.sidecar import ISidecarParser
from src.core.value_objects import UNKNOWN_NUMBER, SidecarMetadata, SidecarParseResult
from src.utils.constants import IMDB_ID_REGEX

ROOT_TAGS = {
    EntityKind.MOVIE: ("movie",),
    EntityKind.TV_SHOW: ("tvshow",),
    EntityKind.EPISODE: ("episodedetails", "recording"),
    EntityKind.MOVIE_SET: ("set", "collection"),
}

_DECLARATION = re.compile(r"<\?xml[^>]*\?>|<!DOCTYPE[^>]*>", re.IGNORECASE)
_WRAPPER = "nfo-document"


class NfoParser(ISidecarParser):
    """Lit les NFO de films, series, episodes et collections."""

    EXTENSIONS = (".nfo", ".xml")

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() in self.EXTENSIONS

    def parse(self, path: Path, kind: EntityKind) -> SidecarParseResult:
        try:
            raw_text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            return SidecarParseResult.failure(f"lecture impossible: {e}")
        return self.parse_text(raw_text, kind)

    def parse_text(self, raw_text: str, kind: EntityKind) -> SidecarParseResult:
        """
        Analyse le contenu d'un NFO.

        Args:
            raw_text: Contenu du fichier
            kind: Type d'entite attendu

        Returns:
            Les entites lues ; un echec conserve le texte brut
        """
        content = _DECLARATION.sub("", raw_text.lstrip("\ufeff"))
        try:
            document = ET.fromstring(f"<{_WRAPPER}>{content}</{_WRAPPER}>")
        except ET.ParseError as e:
            return SidecarParseResult.failure(f"XML invalide: {e}", raw_text)

        tags = ROOT_TAGS[kind]
        elements = [el for el in document if el.tag.lower() in tags]
        if not elements:
            return SidecarParseResult.failure(f"aucun element {'/'.join(tags)}", raw_text)

        if kind is EntityKind.EPISODE:
            records = tuple(r for r in (_read_episode(el) for el in elements) if r.has_title)
            if len(records) > 1 and records[0].episode < 0:
                # Plusieurs episodes : le numero est obligatoire
                return SidecarParseResult.failure("multi-episodes sans numero", raw_text)
        else:
            records = (_read_entity(elements[0], kind),)

        if not records:
            return SidecarParseResult.failure("aucune entite exploitable", raw_text)
        return SidecarParseResult(records=records, raw_text=raw_text)


def _read_entity(element: ET.Element, kind: EntityKind) -> SidecarMetadata:
    imdb_id, tmdb_id, tvdb_id = _read_ids(element, kind)
    premiered = _date(_text(element, "premiered") or _text(element, "aired"))
    year = _int(_text(element, "year"), 0)
    if year <= 0 and premiered is not None:
        year = premiered.year

    return SidecarMetadata(
        title=_text(element, "title"),
        original_title=_text(element, "originaltitle"),
        sort_title=_text(element, "sorttitle"),
        year=max(year, 0),
        plot=_text(element, "plot") or _text(element, "outline"),
        tagline=_text(element, "tagline"),
        imdb_id=imdb_id,
        tmdb_id=tmdb_id,
        tvdb_id=tvdb_id,
        first_aired=premiered,
        edition=_text(element, "edition"),
        movie_set=_read_movie_set(element) if kind is EntityKind.MOVIE else "",
        locked=_read_locked(element),
    )


def _read_episode(element: ET.Element) -> SidecarMetadata:
    if element.tag.lower() == "recording":
        # Format NextPVR : le titre de l'episode est dans <subtitle>
        aired = _date(_text(element, "original_air_date"))
        plot = _text(element, "description")
        return SidecarMetadata(
            title=_text(element, "subtitle") or _text(element, "title") or plot,
            plot=plot,
            first_aired=aired,
            year=aired.year if aired else 0,
        )

    imdb_id, tmdb_id, tvdb_id = _read_ids(element, EntityKind.EPISODE)
    aired = _date(_text(element, "aired") or _text(element, "premiered"))
    return SidecarMetadata(
        title=_text(element, "title"),
        original_title=_text(element, "originaltitle"),
        year=_int(_text(element, "year"), 0) or (aired.year if aired else 0),
        plot=_text(element, "plot") or _text(element, "outline"),
        imdb_id=imdb_id,
        tmdb_id=tmdb_id,
        tvdb_id=tvdb_id,
        season=_int(_text(element, "season"), UNKNOWN_NUMBER),
        episode=_int(_text(element, "episode"), UNKNOWN_NUMBER),
        first_aired=aired,
        locked=_read_locked(element),
    )


def _read_ids(element: ET.Element, kind: EntityKind) -> tuple[str, int, int]:
    """
    Identifiants IMDB, TMDB et TVDB.

    Sources, par priorite croissante : <id>, <uniqueid type="...">, puis
    les balises dediees <imdb>/<imdbid>, <tmdbid> et <tvdbid>.
    """
    imdb_id, tmdb_id, tvdb_id = "", 0, 0

    legacy = _text(element, "id")
    if IMDB_ID_REGEX.fullmatch(legacy):
        imdb_id = legacy
    elif legacy.isdigit():
        # Ancien format : <id> porte l'identifiant TVDB des series, TMDB des films
        if kind in (EntityKind.TV_SHOW, EntityKind.EPISODE):
            tvdb_id = int(legacy)
        else:
            tmdb_id = int(legacy)

    for unique in element.findall("uniqueid"):
        value = (unique.text or "").strip()
        provider = unique.get("type", "").lower()
        if not value:
            continue
        if provider == "imdb" and IMDB_ID_REGEX.fullmatch(value):
            imdb_id = value
        elif provider == "tmdb":
            tmdb_id = _int(value, tmdb_id)
        elif provider in ("tvdb", "unknown") and not tvdb_id:
            tvdb_id = _int(value, tvdb_id)

    for tag in ("imdb", "imdbid"):
        value = _text(element, tag)
        if IMDB_ID_REGEX.fullmatch(value):
            imdb_id = value
    tmdb_id = _int(_text(element, "tmdbid"), tmdb_id)
    tvdb_id = _int(_text(element, "tvdbid"), tvdb_id)
    return imdb_id, tmdb_id, tvdb_id


def _read_movie_set(element: ET.Element) -> str:
    movie_set = element.find("set")
    if movie_set is None:
        return ""
    # Format Kodi recent : <set><name>...</name></set>
    name = movie_set.findtext("name")
    return (name if name is not None else movie_set.text or "").strip()


def _read_locked(element: ET.Element) -> bool:
    return any(_text(element, tag).lower() == "true" for tag in ("lockdata", "locked"))


def _text(element: ET.Element, tag: str) -> str:
    value = element.findtext(tag)
    return value.strip() if value else ""


def _int(value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        return default


def _date(value: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        logger.trace(f"Date illisible dans le NFO: {value}")
        return None
