"""
Tests unitaires pour ReconciliationStore.

Verifie la fusion des titres decouverts (insertion, sauvegarde seulement
en cas de changement), les regles de suppression et le nettoyage des
fichiers disparus.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from src.core.entities import CandidateEntity, EntityKind, LibraryEntity
from src.core.value_objects import MediaFile, MediaFileKind
from src.services.scanning import MessageLog
from src.services.scanning.messages import CLEANUP_IO_FAILURE, NO_VIDEO
from src.services.scanning.reconciliation import ReconciliationStore, entity_fingerprint
from src.services.scanning.session import ScanSession
from tests.conftest import FakeLibraryRepository


def _movie(folder: Path, datasource: Path, *names: str, **kwargs) -> LibraryEntity:
    movie = LibraryEntity.new_movie(title=folder.name, path=folder, datasource=datasource, **kwargs)
    for name in names:
        kind = MediaFileKind.VIDEO if name.endswith(".mkv") else MediaFileKind.POSTER
        movie.add_media_file(MediaFile(folder / name, kind))
    return movie


def _candidate(folder: Path, datasource: Path, title: str = "Inception") -> CandidateEntity:
    return CandidateEntity(
        kind=EntityKind.MOVIE,
        root=folder,
        datasource=datasource,
        files=[MediaFile(folder / f"{title}.mkv", MediaFileKind.VIDEO)],
        title=title,
        year=2010,
    )


@pytest.fixture
def session() -> ScanSession:
    return ScanSession()


class TestAdopt:
    """Tests pour la fusion d'un titre decouvert."""

    def test_new_entity_inserted_on_exit(self, movies_dir: Path, session: ScanSession) -> None:
        repository = FakeLibraryRepository()
        store = ReconciliationStore(repository, session)
        candidate = _candidate(movies_dir / "Inception", movies_dir)

        with store.adopt(candidate) as entity:
            entity.add_media_files(candidate.files)
            # Pas encore inseree tant que le bloc n'est pas termine
            assert repository.inserts == 0

        assert repository.inserts == 1
        assert entity.newly_added
        assert entity.title == "Inception"
        assert store.find(movies_dir / "Inception") is entity

    def test_exception_leaves_library_untouched(self, movies_dir: Path, session: ScanSession) -> None:
        repository = FakeLibraryRepository()
        store = ReconciliationStore(repository, session)

        with pytest.raises(RuntimeError):
            with store.adopt(_candidate(movies_dir / "Inception", movies_dir)):
                raise RuntimeError("boom")

        assert repository.inserts == 0
        assert store.find(movies_dir / "Inception") is None

    def test_movie_without_video_not_inserted(self, movies_dir: Path, session: ScanSession) -> None:
        repository = FakeLibraryRepository()
        messages = MessageLog()
        store = ReconciliationStore(repository, session, messages=messages)

        with store.adopt(_candidate(movies_dir / "Inception", movies_dir)):
            pass

        assert repository.inserts == 0
        assert messages.by_key(NO_VIDEO)

    def test_locked_entity_yields_none(self, movies_dir: Path, session: ScanSession) -> None:
        folder = movies_dir / "Inception"
        existing = _movie(folder, movies_dir, "Inception.mkv", locked=True)
        repository = FakeLibraryRepository([existing])
        store = ReconciliationStore(repository, session)

        with store.adopt(_candidate(folder, movies_dir)) as entity:
            assert entity is None

        assert repository.saves == 0

    def test_existing_entity_saved_only_on_change(self, movies_dir: Path, session: ScanSession) -> None:
        folder = movies_dir / "Inception"
        existing = _movie(folder, movies_dir, "Inception.mkv")
        repository = FakeLibraryRepository([existing])
        store = ReconciliationStore(repository, session)

        with store.adopt(_candidate(folder, movies_dir)) as entity:
            assert entity is existing
            # Fichier deja connu : aucun changement
            entity.add_media_file(MediaFile(folder / "Inception.mkv", MediaFileKind.VIDEO))
        assert repository.saves == 0

        with store.adopt(_candidate(folder, movies_dir)) as entity:
            entity.add_media_file(MediaFile(folder / "poster.jpg", MediaFileKind.POSTER))
        assert repository.saves == 1
        assert repository.inserts == 0

    def test_loaded_entities_are_not_new(self, movies_dir: Path, session: ScanSession) -> None:
        existing = _movie(movies_dir / "Inception", movies_dir, "Inception.mkv", newly_added=True)
        ReconciliationStore(FakeLibraryRepository([existing]), session)
        assert not existing.newly_added

    def test_cancelled_scan_skips_new_entity(self, movies_dir: Path, session: ScanSession) -> None:
        """Un scan annule n'enregistre pas une entite en cours de creation."""
        repository = FakeLibraryRepository()
        store = ReconciliationStore(repository, session)
        candidate = _candidate(movies_dir / "Inception", movies_dir)

        with store.adopt(candidate) as entity:
            entity.add_media_files(candidate.files)
            session.cancel()

        assert repository.inserts == 0
        assert store.find(movies_dir / "Inception") is None


class TestRemove:
    """Tests pour les regles de suppression."""

    def test_locked_entity_never_removed(self, movies_dir: Path, session: ScanSession) -> None:
        movie = _movie(movies_dir / "Inception", movies_dir, "Inception.mkv", locked=True)
        repository = FakeLibraryRepository([movie])
        store = ReconciliationStore(repository, session)

        assert store.remove(movie) is False
        assert repository.removes == 0

    def test_newly_added_entity_never_removed(self, movies_dir: Path, session: ScanSession) -> None:
        store = ReconciliationStore(FakeLibraryRepository(), session)
        movie = _movie(movies_dir / "Inception", movies_dir, "Inception.mkv", newly_added=True)

        assert store.remove(movie) is False


class TestCleanupMovies:
    """Tests pour le nettoyage de fin de scan."""

    def test_unseen_files_removed(self, movies_dir: Path, session: ScanSession) -> None:
        folder = movies_dir / "Inception"
        movie = _movie(folder, movies_dir, "Inception.mkv", "Inception.1080p.mkv")
        repository = FakeLibraryRepository([movie])
        store = ReconciliationStore(repository, session)
        session.mark_seen([folder, folder / "Inception.mkv"])

        store.cleanup_movies(store.entities(EntityKind.MOVIE))

        assert [mf.filename for mf in movie.media_files] == ["Inception.mkv"]
        assert repository.saves == 1
        assert repository.removes == 0

    def test_no_video_left_removes_movie(self, movies_dir: Path, session: ScanSession) -> None:
        folder = movies_dir / "Inception"
        movie = _movie(folder, movies_dir, "Inception.mkv")
        repository = FakeLibraryRepository([movie])
        store = ReconciliationStore(repository, session)
        session.mark_seen([folder])

        store.cleanup_movies(store.entities(EntityKind.MOVIE))

        assert repository.removes == 1
        assert store.find(folder) is None

    def test_missing_root_removes_movie(self, movies_dir: Path, session: ScanSession) -> None:
        movie = _movie(movies_dir / "Absent", movies_dir, "Absent.mkv")
        repository = FakeLibraryRepository([movie])
        store = ReconciliationStore(repository, session)

        store.cleanup_movies(store.entities(EntityKind.MOVIE))

        assert repository.removes == 1

    def test_existing_but_unseen_root_untouched(self, movies_dir: Path, session: ScanSession) -> None:
        """Un dossier present mais non parcouru n'est pas nettoye."""
        folder = movies_dir / "Inception"
        folder.mkdir()
        movie = _movie(folder, movies_dir, "Inception.mkv")
        repository = FakeLibraryRepository([movie])
        store = ReconciliationStore(repository, session)

        store.cleanup_movies(store.entities(EntityKind.MOVIE))

        assert repository.removes == 0
        assert movie.has_video

    def test_image_cache_failure_keeps_artwork(self, movies_dir: Path, session: ScanSession) -> None:
        folder = movies_dir / "Inception"
        movie = _movie(folder, movies_dir, "Inception.mkv", "poster.jpg")
        image_cache = MagicMock()
        image_cache.invalidate.side_effect = OSError("disque plein")
        messages = MessageLog()
        store = ReconciliationStore(FakeLibraryRepository([movie]), session, image_cache, messages)
        session.mark_seen([folder, folder / "Inception.mkv"])

        store.cleanup_movies(store.entities(EntityKind.MOVIE))

        assert movie.has_media_file(MediaFile(folder / "poster.jpg"))
        assert messages.by_key(CLEANUP_IO_FAILURE)

    def test_vanished_artwork_invalidated(self, movies_dir: Path, session: ScanSession) -> None:
        folder = movies_dir / "Inception"
        movie = _movie(folder, movies_dir, "Inception.mkv", "poster.jpg")
        image_cache = MagicMock()
        store = ReconciliationStore(FakeLibraryRepository([movie]), session, image_cache)
        session.mark_seen([folder, folder / "Inception.mkv"])

        store.cleanup_movies(store.entities(EntityKind.MOVIE))

        image_cache.invalidate.assert_called_once_with(folder / "poster.jpg")
        assert not movie.has_media_file(MediaFile(folder / "poster.jpg"))

    def test_disc_movie_collapses_nested_content(self, movies_dir: Path, session: ScanSession) -> None:
        """Un dossier de disque ne garde que sa structure et absorbe les titres imbriques."""
        folder = movies_dir / "Avatar"
        disc = _movie(folder, movies_dir, "sample.mkv")
        disc.add_media_file(MediaFile(folder / "BDMV", MediaFileKind.VIDEO))
        disc.details.disc = True
        nested = _movie(folder / "Bonus", movies_dir, "Bonus.mkv")
        repository = FakeLibraryRepository([disc, nested])
        store = ReconciliationStore(repository, session)
        session.mark_seen(
            [folder, folder / "BDMV", folder / "sample.mkv", folder / "Bonus", folder / "Bonus" / "Bonus.mkv"]
        )

        store.cleanup_movies(store.entities(EntityKind.MOVIE))

        assert [mf.filename for mf in disc.media_files_of(MediaFileKind.VIDEO)] == ["BDMV"]
        assert repository.saves == 1
        assert repository.removes == 1
        assert store.find(folder / "Bonus") is None
        assert store.find(folder) is disc


class TestCleanupShows:
    """Tests pour le nettoyage des episodes."""

    def test_episode_without_video_removed(self, shows_dir: Path, session: ScanSession) -> None:
        folder = shows_dir / "Foo"
        show = LibraryEntity.new_tv_show(title="Foo", path=folder, datasource=shows_dir)
        kept = LibraryEntity.new_episode(1, 1, title="One", path=folder)
        kept.add_media_file(MediaFile(folder / "Foo.S01E01.mkv", MediaFileKind.VIDEO))
        gone = LibraryEntity.new_episode(1, 2, title="Two", path=folder)
        gone.add_media_file(MediaFile(folder / "Foo.S01E02.mkv", MediaFileKind.VIDEO))
        show.episodes.extend([kept, gone])
        repository = FakeLibraryRepository([show])
        store = ReconciliationStore(repository, session)
        session.mark_seen([folder, folder / "Foo.S01E01.mkv"])

        store.cleanup_shows(store.entities(EntityKind.TV_SHOW))

        assert show.episodes == [kept]
        assert repository.saves == 1


class TestFingerprint:
    """Tests pour l'empreinte des champs persistes."""

    def test_lock_is_not_part_of_fingerprint(self, movies_dir: Path) -> None:
        first = _movie(movies_dir / "Inception", movies_dir, "Inception.mkv")
        second = _movie(movies_dir / "Inception", movies_dir, "Inception.mkv")
        assert entity_fingerprint(first) == entity_fingerprint(second)

    def test_title_change(self, movies_dir: Path) -> None:
        movie = _movie(movies_dir / "Inception", movies_dir, "Inception.mkv")
        before = entity_fingerprint(movie)
        movie.title = "Origine"
        assert entity_fingerprint(movie) != before
