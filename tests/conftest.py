"""
Fixtures pytest partagees pour les tests CineScan.

Ce module contient les fixtures communes utilisees dans les tests:
- Settings de test avec chemins temporaires
- Repository en memoire et mocks des ports (cache d'images, messages)
- Construction d'arborescences de sources de donnees sur disque
"""

from pathlib import Path
from typing import Iterable, Optional
from unittest.mock import MagicMock

import pytest

from src.adapters.sidecar import default_parsers
from src.config import Settings
from src.core.entities import EntityKind, LibraryEntity
from src.core.ports.image_cache import IImageCache
from src.core.ports.repositories import ILibraryRepository
from src.services.scanning import MessageLog, MetadataSeeder, MovieScanner, ScanConfig, TvShowScanner


class FakeLibraryRepository(ILibraryRepository):
    """
    Repository en memoire pour les tests.

    Conserve les entites telles quelles et compte les ecritures.
    """

    def __init__(self, entities: Optional[Iterable[LibraryEntity]] = None) -> None:
        self.entities: list[LibraryEntity] = []
        self.inserts = 0
        self.saves = 0
        self.removes = 0
        self._next_id = 1
        for entity in entities or []:
            self._assign_id(entity)
            self.entities.append(entity)

    def _assign_id(self, entity: LibraryEntity) -> None:
        if entity.id is None:
            entity.id = self._next_id
            self._next_id += 1

    def find_by_root_path(
        self, path: Path, kind: Optional[EntityKind] = None
    ) -> Optional[LibraryEntity]:
        for entity in self.entities:
            if entity.path == path and (kind is None or entity.kind is kind):
                return entity
        return None

    def all_entities(self, kind: Optional[EntityKind] = None) -> list[LibraryEntity]:
        return [e for e in self.entities if kind is None or e.kind is kind]

    def insert(self, entity: LibraryEntity) -> LibraryEntity:
        self._assign_id(entity)
        self.entities.append(entity)
        self.inserts += 1
        return entity

    def save(self, entity: LibraryEntity) -> LibraryEntity:
        self.saves += 1
        return entity

    def remove(self, entity: LibraryEntity) -> bool:
        if entity not in self.entities:
            return False
        self.entities.remove(entity)
        self.removes += 1
        return True

    def titles(self, kind: EntityKind) -> list[str]:
        return sorted(e.title for e in self.all_entities(kind))


def make_tree(root: Path, *relative_paths: str) -> list[Path]:
    """
    Cree une arborescence de fichiers vides sous root.

    Un chemin terminant par "/" cree un dossier.

    Returns:
        Les chemins crees
    """
    created = []
    for relative in relative_paths:
        path = root / relative
        if relative.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch()
        created.append(path)
    return created


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """
    Settings de test avec chemins temporaires.

    Utilise tmp_path de pytest pour creer une structure de repertoires
    isolee pour chaque test.
    """
    movies_dir = tmp_path / "Films"
    shows_dir = tmp_path / "Series"
    movies_dir.mkdir(exist_ok=True)
    shows_dir.mkdir(exist_ok=True)

    return Settings(
        _env_file=None,  # Ignorer le fichier .env pour les tests
        movie_datasources=[movies_dir],
        tvshow_datasources=[shows_dir],
        database_url="sqlite://",
        image_cache_dir=tmp_path / "cache",
        log_file=tmp_path / "test.log",
        update_workers=2,
    )


@pytest.fixture
def movies_dir(tmp_path: Path) -> Path:
    path = tmp_path / "Films"
    path.mkdir(exist_ok=True)
    return path


@pytest.fixture
def shows_dir(tmp_path: Path) -> Path:
    path = tmp_path / "Series"
    path.mkdir(exist_ok=True)
    return path


@pytest.fixture
def repository() -> FakeLibraryRepository:
    return FakeLibraryRepository()


@pytest.fixture
def message_log() -> MessageLog:
    return MessageLog()


@pytest.fixture
def mock_image_cache() -> MagicMock:
    """Mock de IImageCache ; invalidate reussit par defaut."""
    mock = MagicMock(spec=IImageCache)
    mock.invalidate.return_value = True
    return mock


@pytest.fixture
def scan_config() -> ScanConfig:
    return ScanConfig(workers=2)


@pytest.fixture
def seeder() -> MetadataSeeder:
    return MetadataSeeder(default_parsers())


@pytest.fixture
def movie_scanner(
    repository: FakeLibraryRepository,
    seeder: MetadataSeeder,
    message_log: MessageLog,
    scan_config: ScanConfig,
    mock_image_cache: MagicMock,
) -> MovieScanner:
    return MovieScanner(repository, seeder, message_log, scan_config, mock_image_cache)


@pytest.fixture
def tvshow_scanner(
    repository: FakeLibraryRepository,
    seeder: MetadataSeeder,
    message_log: MessageLog,
    scan_config: ScanConfig,
    mock_image_cache: MagicMock,
) -> TvShowScanner:
    return TvShowScanner(repository, seeder, message_log, scan_config, mock_image_cache)


@pytest.fixture
def tree():
    """Acces a make_tree depuis les tests."""
    return make_tree
