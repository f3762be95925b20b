"""
Parcours des arborescences de sources de donnees.

Le parcours est une fonction pure du systeme de fichiers : il retourne les
dossiers a analyser (ScanTarget) ou l'ensemble des fichiers d'un titre,
sans modifier la bibliotheque. Seuls les compteurs de la ScanSession sont
incrementes, et le drapeau d'annulation est consulte a chaque dossier et
a chaque fichier.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from loguru import logger

from src.core.value_objects import MediaFileKind
from src.services.scanning.classifier import PathClassifier
from src.services.scanning.disc_resolver import is_disc_folder_name
from src.services.scanning.scan_config import ScanConfig
from src.services.scanning.session import ScanSession
from src.services.scanning.skip_policy import SkipPolicy
from src.utils.stacking import get_folder_stacking_marker


class TargetKind(str, Enum):
    """Mode d'analyse d'un dossier contenant des videos."""

    SINGLE = "single"
    MULTI = "multi"


@dataclass(frozen=True)
class ScanTarget:
    """
    Dossier a analyser.

    Attributs:
        kind: SINGLE (un titre, fichiers relistes recursivement) ou MULTI
        directory: Dossier concerne
        files: Fichiers deja listes (MULTI uniquement, non recursif)
    """

    kind: TargetKind
    directory: Path
    files: tuple[Path, ...] = ()


class TreeWalker:
    """
    Parcours en profondeur, protege contre les cycles de liens symboliques.

    Args:
        skip_policy: Politique d'exclusion (films ou series)
        classifier: Classificateur pour reperer les videos
        session: Session de scan (compteurs, annulation)
        config: Configuration du scan
    """

    def __init__(
        self,
        skip_policy: SkipPolicy,
        classifier: PathClassifier,
        session: ScanSession,
        config: Optional[ScanConfig] = None,
    ) -> None:
        self._skip = skip_policy
        self._classifier = classifier
        self._session = session
        self._config = config or ScanConfig()

    # Listings non recursifs

    def list_entries(self, directory: Path) -> list[Path]:
        """
        Fichiers et dossiers d'un dossier, hors exclusions.

        Une erreur de lecture est tracee et traitee comme un dossier vide.
        """
        entries = []
        for entry in self._scandir(directory):
            path = Path(entry.path).absolute()
            if self._skip.is_skip_folder(path):
                logger.debug(f"Exclu: {path}")
                continue
            entries.append(path)
        return entries

    def list_files_only(self, directory: Path) -> list[Path]:
        """Fichiers reguliers (et dossiers de disque) d'un dossier, sans recursion."""
        files = []
        for entry in self._scandir(directory):
            if not (_is_file(entry) or is_disc_folder_name(entry.name)):
                continue
            path = Path(entry.path).absolute()
            if self._skip.is_skip_folder(path):
                logger.debug(f"Exclu: {path}")
                continue
            files.append(path)
        return files

    # Recherche des dossiers de titres

    def find_video_folders(self, datasource: Path, folder: Path) -> list[ScanTarget]:
        """
        Cherche les dossiers contenant des videos sous un dossier racine.

        Les dossiers sont retournes dans l'ordre de sortie du parcours (les
        plus profonds d'abord). Un dossier contenant lui-meme un sous-dossier
        de videos est traite comme un dossier multi-titres : il ne peut pas
        etre a la fois un titre et contenir un autre titre.

        Args:
            datasource: Racine de la source de donnees
            folder: Dossier a parcourir

        Returns:
            Les dossiers a analyser, vides si le scan a ete annule
        """
        state = _SearchState(datasource=datasource.absolute())
        self._search(folder.absolute(), state)
        return state.targets

    def _search(self, directory: Path, state: "_SearchState") -> bool:
        if self._session.is_cancelled:
            return False
        self._session.count_pre_dir()

        parent = ""
        if directory != state.datasource and directory.parent != state.datasource:
            parent = directory.parent.name
        if directory.name and (
            self._skip.is_skip_folder(directory)
            or self._skip.contains_skip_file(directory)
            or is_disc_folder_name(parent)
        ):
            logger.debug(f"Dossier exclu: {directory}")
            return True

        if not _enter(directory, state.visited):
            logger.warning(f"Cycle de liens symboliques ignore: {directory}")
            return True

        for entry in self._scandir(directory):
            if _is_dir(entry):
                if not self._search(Path(entry.path), state):
                    return False
                continue
            if self._session.is_cancelled:
                return False
            self._session.count_file()
            if _is_file(entry) and not self._skip.is_hidden(entry.name):
                self._visit_video_candidate(Path(entry.path), state)

        if self._session.is_cancelled:
            return False
        self._session.count_post_dir()
        if directory in state.video_folders:
            self._add_target(directory, state)
        return True

    def _visit_video_candidate(self, path: Path, state: "_SearchState") -> None:
        if path.suffix.lower() not in self._config.video_extensions:
            return
        # Seuls les dossiers de VIDEO sont analyses (pas les bandes-annonces)
        kind = self._classifier.classify(path)
        if kind is MediaFileKind.VIDEO:
            state.video_folders.add(path.parent)
        else:
            logger.debug(f"Pas une video principale ({kind.name}): {path}")

    def _add_target(self, directory: Path, state: "_SearchState") -> None:
        # Decoupage en dossiers : Film/CD1 et Film/CD2 ne forment qu'un titre
        relative = str(directory.relative_to(state.datasource)) if directory.is_relative_to(state.datasource) else ""
        marker = get_folder_stacking_marker(relative)
        if marker and marker == directory.name:
            if directory.parent in state.unstacked_roots:
                return
            state.unstacked_roots.add(directory.parent)

        for other in state.video_folders:
            if other != directory and other.is_relative_to(directory):
                files = tuple(self.list_files_only(directory))
                state.targets.append(ScanTarget(TargetKind.MULTI, directory, files))
                return
        state.targets.append(ScanTarget(TargetKind.SINGLE, directory))

    # Fichiers d'un titre

    def collect_files(self, folder: Path) -> set[Path]:
        """
        Tous les fichiers d'un titre, sans le contenu des structures de disque.

        Un dossier BDMV / VIDEO_TS / HVDVD_TS est retourne lui-meme (il
        represente le disque) ; seuls les NFO places directement dedans sont
        conserves, et ses sous-dossiers ne sont pas parcourus.

        Returns:
            Chemins absolus trouves (vide si le scan a ete annule)
        """
        found: set[Path] = set()
        self._collect(folder.absolute(), found, set())
        return found

    def _collect(self, directory: Path, found: set[Path], visited: set[str]) -> bool:
        if self._session.is_cancelled:
            return False
        self._session.count_pre_dir()

        if directory.name and (
            self._skip.is_skip_folder(directory) or self._skip.contains_skip_file(directory)
        ):
            logger.debug(f"Dossier exclu: {directory}")
            return True
        if is_disc_folder_name(directory.name):
            found.add(directory)
        elif is_disc_folder_name(directory.parent.name):
            return True

        if not _enter(directory, visited):
            logger.warning(f"Cycle de liens symboliques ignore: {directory}")
            return True

        in_disc_folder = is_disc_folder_name(directory.name)
        for entry in self._scandir(directory):
            if _is_dir(entry):
                if not self._collect(Path(entry.path), found, visited):
                    return False
                continue
            if self._session.is_cancelled:
                return False
            self._session.count_file()

            path = Path(entry.path)
            regular = _is_file(entry)
            if regular and in_disc_folder:
                # Dans une structure de disque, seuls les NFO sont repris
                if path.suffix.lower() == ".nfo":
                    found.add(path)
                continue
            if PathClassifier.is_main_disc_identifier(entry.name):
                found.add(path)
                continue
            if regular and not self._skip.is_hidden(entry.name):
                found.add(path)

        self._session.count_post_dir()
        return True

    @staticmethod
    def _scandir(directory: Path) -> list[os.DirEntry]:
        try:
            with os.scandir(directory) as iterator:
                return sorted(iterator, key=lambda e: e.name)
        except OSError as e:
            logger.warning(f"Lecture impossible de {directory}: {e}")
            return []


@dataclass
class _SearchState:
    datasource: Path
    targets: list[ScanTarget] = field(default_factory=list)
    video_folders: set[Path] = field(default_factory=set)
    unstacked_roots: set[Path] = field(default_factory=set)
    visited: set[str] = field(default_factory=set)


def _enter(directory: Path, visited: set[str]) -> bool:
    """Enregistre un dossier par son chemin canonique ; False s'il a deja ete vu."""
    real = os.path.realpath(directory)
    if real in visited:
        return False
    visited.add(real)
    return True


def _is_dir(entry: os.DirEntry) -> bool:
    try:
        return entry.is_dir()
    except OSError:
        return False


def _is_file(entry: os.DirEntry) -> bool:
    try:
        return entry.is_file()
    except OSError:
        return False
