"""
Utilitaires et constantes pour CineScan.

Ce module contient les constantes et fonctions utilitaires partagees.
"""

from src.utils.constants import (
    DEFAULT_AUDIO_EXTENSIONS,
    DEFAULT_SUBTITLE_EXTENSIONS,
    DEFAULT_VIDEO_EXTENSIONS,
    SKIP_FILES,
    SKIP_FOLDERS,
)

__all__ = [
    "DEFAULT_VIDEO_EXTENSIONS",
    "DEFAULT_AUDIO_EXTENSIONS",
    "DEFAULT_SUBTITLE_EXTENSIONS",
    "SKIP_FOLDERS",
    "SKIP_FILES",
]
