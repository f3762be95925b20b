"""
Objet valeur MediaFile et taxonomie des types de fichiers.

Un MediaFile est recree a chaque passe de scan : il ne porte que le chemin
et le type deduit. Le type reste modifiable car certaines passes le revisent
(image orpheline retrogradee en GRAPHIC, affiche promue en SEASON_POSTER...).
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from src.utils.constants import BLURAY_FILE_REGEX, DVD_FILE_REGEX
from src.utils.stacking import clean_stacking_markers


class MediaFileKind(Enum):
    """Role d'un fichier dans une entite de la bibliotheque."""

    VIDEO = "video"
    TRAILER = "trailer"
    SAMPLE = "sample"
    EXTRA = "extra"
    THEME = "theme"
    AUDIO = "audio"
    SUBTITLE = "subtitle"
    NFO = "nfo"
    VSMETA = "vsmeta"
    MEDIAINFO = "mediainfo"
    TEXT = "text"
    POSTER = "poster"
    FANART = "fanart"
    BANNER = "banner"
    THUMB = "thumb"
    CLEARART = "clearart"
    LOGO = "logo"
    CLEARLOGO = "clearlogo"
    DISC = "disc"
    KEYART = "keyart"
    CHARACTERART = "characterart"
    EXTRAFANART = "extrafanart"
    EXTRATHUMB = "extrathumb"
    SEASON_POSTER = "season_poster"
    SEASON_BANNER = "season_banner"
    SEASON_THUMB = "season_thumb"
    GRAPHIC = "graphic"
    DOUBLE_EXT = "double_ext"
    UNKNOWN = "unknown"

    @property
    def is_artwork(self) -> bool:
        """Vrai pour tous les types d'image, y compris GRAPHIC."""
        return self in ARTWORK_KINDS

    @property
    def is_season_artwork(self) -> bool:
        return self in SEASON_ARTWORK_KINDS


ARTWORK_KINDS = frozenset({
    MediaFileKind.POSTER,
    MediaFileKind.FANART,
    MediaFileKind.BANNER,
    MediaFileKind.THUMB,
    MediaFileKind.CLEARART,
    MediaFileKind.LOGO,
    MediaFileKind.CLEARLOGO,
    MediaFileKind.DISC,
    MediaFileKind.KEYART,
    MediaFileKind.CHARACTERART,
    MediaFileKind.EXTRAFANART,
    MediaFileKind.EXTRATHUMB,
    MediaFileKind.SEASON_POSTER,
    MediaFileKind.SEASON_BANNER,
    MediaFileKind.SEASON_THUMB,
    MediaFileKind.GRAPHIC,
})

SEASON_ARTWORK_KINDS = frozenset({
    MediaFileKind.SEASON_POSTER,
    MediaFileKind.SEASON_BANNER,
    MediaFileKind.SEASON_THUMB,
})


@dataclass(eq=False)
class MediaFile:
    """
    Fichier observe sur disque avec son role.

    L'egalite et le hachage reposent uniquement sur le chemin : deux passes
    de scan produisant le meme fichier donnent des MediaFile egaux, meme si
    le type a ete revise entre-temps.

    Attributs:
        path: Chemin absolu du fichier
        kind: Type deduit (modifiable)
    """

    path: Path
    kind: MediaFileKind = MediaFileKind.UNKNOWN

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MediaFile):
            return NotImplemented
        return self.path == other.path

    def __hash__(self) -> int:
        return hash(self.path)

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def folder(self) -> Path:
        return self.path.parent

    @property
    def extension(self) -> str:
        """Extension en minuscules, sans le point."""
        return self.path.suffix.lower().lstrip(".")

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def basename_without_stacking(self) -> str:
        """Nom sans extension ni marqueur de decoupage (CD1, part2...)."""
        return Path(clean_stacking_markers(self.filename)).stem

    @property
    def is_disc_file(self) -> bool:
        """Vrai si le fichier appartient a une structure DVD, Blu-ray ou HD-DVD."""
        return is_disc_path(self.path)

    def copy(self) -> "MediaFile":
        return MediaFile(path=self.path, kind=self.kind)


def is_dvd_file(path: Path) -> bool:
    name = path.name.lower()
    folder = str(path.parent).lower()
    return (
        name == "video_ts"
        or folder.endswith("video_ts")
        or DVD_FILE_REGEX.fullmatch(name) is not None
    )


def is_bluray_file(path: Path) -> bool:
    name = path.name.lower()
    folder = str(path.parent).lower()
    return (
        name == "bdmv"
        or folder.endswith("bdmv")
        or BLURAY_FILE_REGEX.fullmatch(name) is not None
    )


def is_hddvd_file(path: Path) -> bool:
    name = path.name.lower()
    folder = str(path.parent).lower()
    return name == "hvdvd_ts" or folder.endswith("hvdvd_ts")


def is_disc_path(path: Path) -> bool:
    return is_dvd_file(path) or is_bluray_file(path) or is_hddvd_file(path)
