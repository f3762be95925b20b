"""
Instantane de configuration injecte dans chaque tache de scan.

Le scan ne lit jamais Settings directement : ScanConfig est construit une
fois au lancement et reste en lecture seule pendant toute la session.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from src.config import Settings
from src.utils.constants import (
    DEFAULT_AUDIO_EXTENSIONS,
    DEFAULT_SUBTITLE_EXTENSIONS,
    DEFAULT_VIDEO_EXTENSIONS,
)


@dataclass(frozen=True)
class SkipPattern:
    """
    Motif utilisateur d'exclusion.

    Attributs:
        regex: Motif compile, compare au nom du dossier
        literal: Texte brut du motif, compare au chemin absolu complet
    """

    regex: re.Pattern
    literal: str

    @classmethod
    def compile(cls, raw: str) -> "SkipPattern":
        try:
            regex = re.compile(raw)
        except re.error:
            # Un chemin Windows ("C:\films\old") n'est pas une regex valide
            logger.debug(f"Motif d'exclusion traite comme texte litteral: {raw}")
            regex = re.compile(re.escape(raw))
        return cls(regex=regex, literal=raw.replace(r"\Q", "").replace(r"\E", ""))


@dataclass(frozen=True)
class ScanConfig:
    """Configuration en lecture seule d'une session de scan."""

    video_extensions: frozenset[str] = frozenset(DEFAULT_VIDEO_EXTENSIONS)
    audio_extensions: frozenset[str] = frozenset(DEFAULT_AUDIO_EXTENSIONS)
    subtitle_extensions: frozenset[str] = frozenset(DEFAULT_SUBTITLE_EXTENSIONS)
    badwords: tuple[str, ...] = ()
    skip_patterns: tuple[SkipPattern, ...] = ()
    movieset_data_folder: Optional[Path] = None
    workers: int = 3

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScanConfig":
        return cls(
            video_extensions=frozenset(settings.video_extensions),
            audio_extensions=frozenset(settings.audio_extensions),
            subtitle_extensions=frozenset(settings.subtitle_extensions),
            badwords=tuple(word for word in settings.badwords if word.strip()),
            skip_patterns=tuple(SkipPattern.compile(p) for p in settings.skip_folders if p),
            movieset_data_folder=settings.movieset_data_folder,
            workers=settings.update_workers,
        )

    @classmethod
    def with_skip_folders(cls, *patterns: str, **kwargs) -> "ScanConfig":
        """Raccourci pour construire une configuration avec des motifs d'exclusion."""
        return cls(skip_patterns=tuple(SkipPattern.compile(p) for p in patterns), **kwargs)
