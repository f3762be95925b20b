"""
Objets valeur representant des concepts du domaine sans identite.

Les objets valeur sont definis par leurs attributs plutot que par une identite.

Exports :
- MediaFile / MediaFileKind : Fichier observe et son role
- EpisodeMatch : Numerotation saison/episode deduite d'un nom de fichier
- MediaSource / MovieEdition : Support d'origine et edition
- SidecarMetadata / SidecarParseResult : Metadonnees lues dans les NFO/VSMETA
"""

from src.core.value_objects.episode_match import UNKNOWN_NUMBER, EpisodeMatch
from src.core.value_objects.media_file import (
    ARTWORK_KINDS,
    SEASON_ARTWORK_KINDS,
    MediaFile,
    MediaFileKind,
)
from src.core.value_objects.release_info import MediaSource, MovieEdition
from src.core.value_objects.sidecar import SidecarMetadata, SidecarParseResult

__all__ = [
    "ARTWORK_KINDS",
    "SEASON_ARTWORK_KINDS",
    "MediaFile",
    "MediaFileKind",
    "EpisodeMatch",
    "UNKNOWN_NUMBER",
    "MediaSource",
    "MovieEdition",
    "SidecarMetadata",
    "SidecarParseResult",
]
