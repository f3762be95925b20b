"""
Politique d'exclusion des dossiers et fichiers pendant le scan.
"""

import os
import re
from pathlib import Path
from typing import Iterable, Optional

from src.services.scanning.scan_config import ScanConfig, SkipPattern
from src.utils.constants import (
    MOVIE_SKIP_REGEX,
    SKIP_FILES,
    SKIP_FOLDERS,
    TVSHOW_SKIP_FOLDERS,
    TVSHOW_SKIP_REGEX,
)


class SkipPolicy:
    """
    Decide si un chemin doit etre exclu du scan.

    Regles, dans l'ordre :
    1. nom du dossier (en majuscules) dans la liste des dossiers systeme
    2. nom cache (".xxx", "@xxx") hors exceptions connues
    3. motif utilisateur correspondant au nom, ou egal au chemin absolu

    Fonction pure du couple (chemin, motifs), sans acces disque.
    """

    def __init__(
        self,
        skip_patterns: Iterable[SkipPattern] = (),
        system_folders: frozenset[str] = SKIP_FOLDERS,
        hidden_regex: re.Pattern = MOVIE_SKIP_REGEX,
    ) -> None:
        self._patterns = tuple(skip_patterns)
        self._system_folders = system_folders
        self._hidden_regex = hidden_regex

    @classmethod
    def for_movies(cls, config: ScanConfig) -> "SkipPolicy":
        return cls(config.skip_patterns, SKIP_FOLDERS, MOVIE_SKIP_REGEX)

    @classmethod
    def for_tvshows(cls, config: ScanConfig) -> "SkipPolicy":
        return cls(config.skip_patterns, TVSHOW_SKIP_FOLDERS, TVSHOW_SKIP_REGEX)

    def is_skip_folder(self, path: Path) -> bool:
        """Vrai si le dossier (ou fichier) doit etre ignore avec son contenu."""
        name = path.name
        if not name:
            return False

        if name.upper() in self._system_folders or self.is_hidden(name):
            return True

        full_path = os.path.abspath(path)
        for pattern in self._patterns:
            if pattern.regex.fullmatch(name):
                return True
            # Le motif peut aussi etre un chemin absolu complet
            if pattern.literal == full_path:
                return True
        return False

    def is_hidden(self, filename: str) -> bool:
        return self._hidden_regex.fullmatch(filename) is not None

    def contains_skip_file(
        self, directory: Path, entry_names: Optional[Iterable[str]] = None
    ) -> bool:
        """
        Vrai si le dossier contient un fichier marqueur (.tmmignore, .nomedia).

        Args:
            directory: Dossier a verifier
            entry_names: Noms deja listes, pour eviter un acces disque
        """
        if entry_names is not None:
            return any(name in SKIP_FILES for name in entry_names)
        return any((directory / name).exists() for name in SKIP_FILES)
