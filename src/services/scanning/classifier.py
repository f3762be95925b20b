"""
Classification des fichiers par role (video, sous-titre, illustration...).

Le type est deduit du nom de fichier, de son extension et des noms des
dossiers parents. Aucune lecture de contenu n'est effectuee.
"""

import re
from pathlib import Path
from typing import Iterable, Optional

from src.core.value_objects import MediaFile, MediaFileKind
from src.services.scanning.scan_config import ScanConfig
from src.utils.constants import (
    ARTWORK_EXTENSIONS,
    DISC_FOLDER_REGEX,
    MAIN_BLURAY_STREAM_REGEX,
    MAIN_DISC_IDENTIFIERS,
    PLEX_EXTRA_FOLDERS,
)

_IMG = "(" + "|".join(sorted(ARTWORK_EXTENSIONS)) + ")"
_SEASON = r"season([0-9]{1,4}|-specials|-all)"


def _image_pattern(prefix: str) -> re.Pattern:
    return re.compile(rf"(?i){prefix}\.{_IMG}")


MOVIESET_ARTWORK_PATTERN = _image_pattern(
    r"movieset-(poster|fanart|banner|disc|discart|logo|clearlogo|clearart|thumb)"
)
SEASON_POSTER_PATTERN = _image_pattern(rf"{_SEASON}(-poster)?")
SEASON_BANNER_PATTERN = _image_pattern(rf"{_SEASON}-banner")
SEASON_THUMB_PATTERN = _image_pattern(rf"{_SEASON}-(thumb|landscape)")
POSTER_PATTERN = _image_pattern(r"(.*-poster|poster|folder|movie|.*-cover|cover)")
FANART_PATTERN = _image_pattern(r"(.*-fanart|.*\.fanart|fanart)[0-9]{0,2}")
BANNER_PATTERN = _image_pattern(r"(.*-banner|banner)")
THUMB_PATTERN = _image_pattern(r"(.*-thumb|thumb|.*-landscape|landscape)[0-9]{0,2}")
CLEARART_PATTERN = _image_pattern(r"(.*-clearart|clearart)")
LOGO_PATTERN = _image_pattern(r"(.*-logo|logo)")
CLEARLOGO_PATTERN = _image_pattern(r"(.*-clearlogo|clearlogo)")
DISCART_PATTERN = _image_pattern(r"(.*-discart|discart|.*-disc|disc)")
CHARACTERART_PATTERN = _image_pattern(r"(.*-characterart|characterart)[0-9]{0,2}")
KEYART_PATTERN = _image_pattern(r"(.*-keyart|keyart)")

_EXTRA_BASENAME = re.compile(r"(?i).*[_.-]+extras?$")
_EXTRA_DASHED = re.compile(r"(?i).*[-]+extras?[-].*")
_EXTRA_FOLDER = re.compile(r"extras?")
_PLEX_EXTRA_SUFFIX = re.compile(
    r"(?i).*[-](behindthescenes|deleted|featurette|interview|scene|short|other)$"
)
_THEME = re.compile(r"(?i).*[_.-]+theme\d*$")
_THEME_ONLY = re.compile(r"(?i)theme\d*")
_TRAILER = re.compile(r"(?i).*[\[\]()_.-]+trailer[\[\]()_.-]?$")
_SAMPLE = re.compile(r"(?i).*[\[\]()_.-]+sample[\[\]()_.-]?$")

# Suffixes de role : une image "X-poster.jpg" n'est une affiche que si X
# est le nom de la video principale
ROLE_SUFFIXES = {
    MediaFileKind.FANART: ("fanart",),
    MediaFileKind.THUMB: ("thumb",),
    MediaFileKind.POSTER: ("poster",),
    MediaFileKind.BANNER: ("banner",),
    MediaFileKind.CLEARLOGO: ("clearlogo",),
    MediaFileKind.LOGO: ("logo",),
    MediaFileKind.CLEARART: ("clearart",),
    MediaFileKind.KEYART: ("keyart",),
    MediaFileKind.DISC: ("disc", "discart"),
}


class PathClassifier:
    """
    Determine le MediaFileKind d'un chemin.

    Ordre de decision :
    1. bonus (suffixes, dossiers extras et dossiers Plex)
    2. fichiers de metadonnees (nfo, vsmeta, -mediainfo.xml)
    3. illustrations, par role
    4. musique de generique, audio, sous-titres
    5. videos (bande-annonce, echantillon ou video principale)
    6. texte, sinon inconnu

    Les dossiers de structure de disque (BDMV, VIDEO_TS, HVDVD_TS) sont
    classes VIDEO : ils representent le disque entier.
    """

    def __init__(self, config: Optional[ScanConfig] = None) -> None:
        self._config = config or ScanConfig()

    def media_file(self, path: Path) -> MediaFile:
        return MediaFile(path=path, kind=self.classify(path))

    def media_files(self, paths: Iterable[Path]) -> list[MediaFile]:
        return [self.media_file(path) for path in paths]

    def classify(self, path: Path) -> MediaFileKind:
        filename = path.name
        if DISC_FOLDER_REGEX.fullmatch(filename) and "." not in filename:
            return MediaFileKind.VIDEO

        ext = path.suffix.lower().lstrip(".")
        basename = path.stem
        parents = [p.name.lower() for p in list(path.parents)[:4]]
        folder = parents[0] if parents else ""
        ancestors = parents[1:]

        if self._is_extra(filename, basename, folder, ancestors):
            return MediaFileKind.EXTRA

        if ext == "nfo":
            return MediaFileKind.NFO
        if ext == "vsmeta":
            return MediaFileKind.VSMETA
        if ext == "xml" and basename.endswith("-mediainfo"):
            return MediaFileKind.MEDIAINFO

        if ext in ARTWORK_EXTENSIONS:
            return self.image_kind(path)

        if _THEME.fullmatch(basename) or _THEME_ONLY.fullmatch(basename):
            return MediaFileKind.THEME

        dotted = f".{ext}"
        if dotted in self._config.audio_extensions:
            return MediaFileKind.AUDIO
        if dotted in self._config.subtitle_extensions:
            return MediaFileKind.SUBTITLE

        if dotted in self._config.video_extensions:
            if (
                _TRAILER.fullmatch(basename)
                or basename.lower() == "movie-trailer"
                or folder in ("trailer", "trailers")
            ):
                return MediaFileKind.TRAILER
            if _SAMPLE.fullmatch(basename) or basename.lower() == "sample" or folder == "sample":
                return MediaFileKind.SAMPLE
            return MediaFileKind.VIDEO

        if ext == "txt":
            return MediaFileKind.TEXT
        return MediaFileKind.UNKNOWN

    @staticmethod
    def _is_extra(filename: str, basename: str, folder: str, ancestors: list[str]) -> bool:
        # Nommage "scene" en majuscules
        if ".EXTRAS." in filename:
            return True
        if _EXTRA_BASENAME.fullmatch(basename) or _EXTRA_DASHED.fullmatch(basename):
            return True
        if folder in ("extras", "extra"):
            return True
        if any(_EXTRA_FOLDER.fullmatch(name) for name in ancestors):
            return True
        if _PLEX_EXTRA_SUFFIX.fullmatch(basename):
            return True
        return folder in PLEX_EXTRA_FOLDERS or any(n in PLEX_EXTRA_FOLDERS for n in ancestors)

    def image_kind(self, path: Path) -> MediaFileKind:
        """Role d'une illustration d'apres son nom et son dossier."""
        filename = path.name
        folder = path.parent.name.lower()

        if MOVIESET_ARTWORK_PATTERN.fullmatch(filename):
            return MediaFileKind.GRAPHIC
        if SEASON_POSTER_PATTERN.fullmatch(filename):
            return MediaFileKind.SEASON_POSTER
        if SEASON_BANNER_PATTERN.fullmatch(filename):
            return MediaFileKind.SEASON_BANNER
        if SEASON_THUMB_PATTERN.fullmatch(filename):
            return MediaFileKind.SEASON_THUMB
        if POSTER_PATTERN.fullmatch(filename):
            return MediaFileKind.POSTER
        if FANART_PATTERN.fullmatch(filename):
            if folder.endswith("extrafanart"):
                return MediaFileKind.EXTRAFANART
            return MediaFileKind.FANART
        if BANNER_PATTERN.fullmatch(filename):
            return MediaFileKind.BANNER
        if THUMB_PATTERN.fullmatch(filename):
            if folder.endswith("extrathumbs"):
                return MediaFileKind.EXTRATHUMB
            return MediaFileKind.THUMB
        if CLEARART_PATTERN.fullmatch(filename):
            return MediaFileKind.CLEARART
        if LOGO_PATTERN.fullmatch(filename):
            return MediaFileKind.LOGO
        if CLEARLOGO_PATTERN.fullmatch(filename):
            return MediaFileKind.CLEARLOGO
        if DISCART_PATTERN.fullmatch(filename):
            return MediaFileKind.DISC
        if CHARACTERART_PATTERN.fullmatch(filename) or folder.endswith("characterart"):
            return MediaFileKind.CHARACTERART
        if KEYART_PATTERN.fullmatch(filename):
            return MediaFileKind.KEYART
        if folder in ("extrafanart", "extrafanarts"):
            return MediaFileKind.EXTRAFANART
        if folder in ("extrathumb", "extrathumbs"):
            return MediaFileKind.EXTRATHUMB
        return MediaFileKind.GRAPHIC

    @staticmethod
    def is_main_disc_identifier(filename: str) -> bool:
        """Vrai pour le fichier qui identifie a lui seul un disque (index.bdmv...)."""
        lowered = filename.lower()
        return lowered in MAIN_DISC_IDENTIFIERS or MAIN_BLURAY_STREAM_REGEX.fullmatch(lowered) is not None


def has_invalid_basename(main_video: Optional[MediaFile], media_file: MediaFile, suffix: str) -> bool:
    """
    Vrai si une illustration "X-suffix" ne porte pas le nom de la video principale.

    Une image "Autre-poster.jpg" a cote de "Film.mkv" n'est pas l'affiche du
    film : elle doit rester une illustration non resolue (GRAPHIC).
    """
    if main_video is None:
        return False
    stem = media_file.stem
    marker = f"-{suffix}"
    if not stem.endswith(marker):
        return False
    # "Film-poster.jpg" vaut aussi pour "Film.CD1.mkv"
    prefix = stem[: -len(marker)]
    return prefix not in (main_video.stem, main_video.basename_without_stacking)


def demote_orphan_artwork(main_video: Optional[MediaFile], media_file: MediaFile) -> bool:
    """
    Retrograde en GRAPHIC une illustration dont le prefixe ne correspond pas.

    Returns:
        True si le fichier a ete retrograde
    """
    suffixes = ROLE_SUFFIXES.get(media_file.kind)
    if not suffixes:
        return False
    for suffix in suffixes:
        if has_invalid_basename(main_video, media_file, suffix):
            media_file.kind = MediaFileKind.GRAPHIC
            return True
    return False


def tag_double_extensions(files: Iterable[MediaFile]) -> list[MediaFile]:
    """
    Marque DOUBLE_EXT les fichiers inconnus prolongeant le nom d'une video.

    "Film.mkv.md5" a cote de "Film.mkv" est conserve avec l'entite ; les
    autres fichiers inconnus sont ignores.

    Returns:
        Les fichiers requalifies
    """
    files = list(files)
    video_names = [mf.filename for mf in files if mf.kind is MediaFileKind.VIDEO]
    tagged = []
    for media_file in files:
        if media_file.kind is not MediaFileKind.UNKNOWN:
            continue
        if any(media_file.filename.startswith(name) for name in video_names):
            media_file.kind = MediaFileKind.DOUBLE_EXT
            tagged.append(media_file)
    return tagged
