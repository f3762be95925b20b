"""
Tests pour SQLModelLibraryRepository sur une base SQLite en memoire.

Chaque verification de relecture passe par un nouveau repository (nouvel
index charge depuis la base).
"""

from datetime import date
from pathlib import Path

import pytest
from sqlmodel import Session, SQLModel, select

from src.core.entities import EntityKind, LibraryEntity
from src.core.value_objects import MediaFile, MediaFileKind, MediaSource, MovieEdition
from src.infrastructure.persistence import LibraryEntityModel, build_engine
from src.infrastructure.persistence.repositories import SQLModelLibraryRepository

MOVIE_DIR = Path("/films/Inception")
SHOW_DIR = Path("/series/Lost")


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


def _reload(engine) -> SQLModelLibraryRepository:
    return SQLModelLibraryRepository(Session(engine))


def _movie() -> LibraryEntity:
    movie = LibraryEntity.new_movie(
        title="Inception",
        year=2010,
        path=MOVIE_DIR,
        datasource=Path("/films"),
        imdb_id="tt1375666",
        tmdb_id=27205,
    )
    movie.add_media_file(MediaFile(MOVIE_DIR / "Inception.mkv", MediaFileKind.VIDEO))
    movie.add_media_file(MediaFile(MOVIE_DIR / "poster.jpg", MediaFileKind.POSTER))
    movie.details.edition = MovieEdition.DIRECTORS_CUT
    movie.details.media_source = MediaSource.BLURAY
    return movie


def _show() -> LibraryEntity:
    show = LibraryEntity.new_tv_show(title="Lost", year=2004, path=SHOW_DIR, datasource=Path("/series"))
    for number in (1, 2):
        episode = LibraryEntity.new_episode(1, number, title=f"Pilot ({number})", path=SHOW_DIR / "Season 01")
        episode.details.first_aired = date(2004, 9, 22)
        episode.add_media_file(
            MediaFile(SHOW_DIR / "Season 01" / f"Lost.S01E0{number}.mkv", MediaFileKind.VIDEO)
        )
        show.episodes.append(episode)
    show.details.season_artwork[1] = {"poster": SHOW_DIR / "season01-poster.jpg"}
    return show


class TestInsert:
    """Tests pour l'insertion et la relecture."""

    def test_movie_round_trip(self, engine) -> None:
        with Session(engine) as session:
            movie = SQLModelLibraryRepository(session).insert(_movie())
        assert movie.id is not None

        loaded = _reload(engine).find_by_root_path(MOVIE_DIR, EntityKind.MOVIE)

        assert loaded is not None
        assert loaded.title == "Inception"
        assert loaded.tmdb_id == 27205
        assert [(mf.filename, mf.kind) for mf in loaded.media_files] == [
            ("Inception.mkv", MediaFileKind.VIDEO),
            ("poster.jpg", MediaFileKind.POSTER),
        ]
        assert loaded.details.edition is MovieEdition.DIRECTORS_CUT
        assert loaded.details.media_source is MediaSource.BLURAY

    def test_show_with_episodes(self, engine) -> None:
        with Session(engine) as session:
            show = SQLModelLibraryRepository(session).insert(_show())
        assert all(episode.id is not None for episode in show.episodes)

        loaded = _reload(engine).find_by_root_path(SHOW_DIR)

        assert [ep.title for ep in loaded.episodes] == ["Pilot (1)", "Pilot (2)"]
        assert loaded.episodes[1].details.episode == 2
        assert loaded.episodes[0].details.first_aired == date(2004, 9, 22)
        assert loaded.details.season_artwork == {1: {"poster": SHOW_DIR / "season01-poster.jpg"}}

    def test_episodes_are_not_top_level(self, engine) -> None:
        with Session(engine) as session:
            SQLModelLibraryRepository(session).insert(_show())

        repository = _reload(engine)

        assert [e.kind for e in repository.all_entities()] == [EntityKind.TV_SHOW]
        assert list(repository.all_entities(EntityKind.EPISODE)) == []


class TestSave:
    """Tests pour la mise a jour."""

    def test_save_updates_row(self, engine) -> None:
        with Session(engine) as session:
            repository = SQLModelLibraryRepository(session)
            movie = repository.insert(_movie())
            movie.title = "Origine"
            movie.locked = True
            repository.save(movie)

        loaded = _reload(engine).find_by_root_path(MOVIE_DIR)

        assert loaded.title == "Origine"
        assert loaded.locked

    def test_removed_episode_row_deleted(self, engine) -> None:
        with Session(engine) as session:
            repository = SQLModelLibraryRepository(session)
            show = repository.insert(_show())
            show.episodes.pop()
            repository.save(show)

        with Session(engine) as session:
            rows = session.exec(
                select(LibraryEntityModel).where(LibraryEntityModel.kind == EntityKind.EPISODE.value)
            ).all()
        assert len(rows) == 1

    def test_save_without_id_inserts(self, engine) -> None:
        with Session(engine) as session:
            movie = SQLModelLibraryRepository(session).save(_movie())
        assert movie.id is not None


class TestRemove:
    """Tests pour la suppression."""

    def test_remove_show_and_episodes(self, engine) -> None:
        with Session(engine) as session:
            repository = SQLModelLibraryRepository(session)
            show = repository.insert(_show())
            assert repository.remove(show)
            assert repository.find_by_root_path(SHOW_DIR) is None

        with Session(engine) as session:
            assert session.exec(select(LibraryEntityModel)).all() == []

    def test_remove_unsaved_entity(self, engine) -> None:
        with Session(engine) as session:
            assert SQLModelLibraryRepository(session).remove(_movie()) is False
