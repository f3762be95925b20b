"""
Tests pour l'entite LibraryEntity.
"""

from datetime import date
from pathlib import Path

from src.core.entities import EntityKind, EpisodeDetails, LibraryEntity, MovieDetails, ShowDetails
from src.core.value_objects import MediaFile, MediaFileKind, MovieEdition, SidecarMetadata


class TestLibraryEntityCreation:
    """Tests pour les fabriques et les details par type."""

    def test_details_follow_kind(self) -> None:
        assert isinstance(LibraryEntity.new_movie().details, MovieDetails)
        assert isinstance(LibraryEntity.new_tv_show().details, ShowDetails)
        assert isinstance(LibraryEntity.new_episode(1, 2).details, EpisodeDetails)

    def test_new_episode_numbers(self) -> None:
        episode = LibraryEntity.new_episode(2, 5, title="Pilot")
        assert episode.kind is EntityKind.EPISODE
        assert (episode.details.season, episode.details.episode) == (2, 5)

    def test_identity_is_object_identity(self) -> None:
        """Deux entites de meme titre restent distinctes."""
        first = LibraryEntity.new_movie(title="Dune")
        second = LibraryEntity.new_movie(title="Dune")
        assert first != second


class TestLibraryEntityFiles:
    """Tests pour le rattachement des fichiers."""

    def test_add_media_file_is_idempotent(self) -> None:
        movie = LibraryEntity.new_movie()
        video = MediaFile(Path("/films/Dune/Dune.mkv"), MediaFileKind.VIDEO)

        assert movie.add_media_file(video) is True
        assert movie.add_media_file(MediaFile(video.path, MediaFileKind.VIDEO)) is False
        assert len(movie.media_files) == 1

    def test_main_video_tie_keeps_first_video(self) -> None:
        movie = LibraryEntity.new_movie()
        movie.add_media_files([
            MediaFile(Path("/films/Dune/poster.jpg"), MediaFileKind.POSTER),
            MediaFile(Path("/films/Dune/Dune.CD1.mkv"), MediaFileKind.VIDEO),
            MediaFile(Path("/films/Dune/Dune.CD2.mkv"), MediaFileKind.VIDEO),
        ])
        assert movie.main_video.filename == "Dune.CD1.mkv"
        assert movie.has_video

    def test_main_video_prefers_longest_name(self) -> None:
        """L'ordre de rattachement ne decide pas de la video principale."""
        movie = LibraryEntity.new_movie()
        movie.add_media_files([
            MediaFile(Path("/films/Dune/Dune.mkv"), MediaFileKind.VIDEO),
            MediaFile(Path("/films/Dune/Dune.Extended.Cut.mkv"), MediaFileKind.VIDEO),
        ])
        assert movie.main_video.filename == "Dune.Extended.Cut.mkv"

    def test_main_video_prefers_disc_identifier(self) -> None:
        movie = LibraryEntity.new_movie()
        movie.add_media_files([
            MediaFile(Path("/films/Dune/Dune.Making.Of.mkv"), MediaFileKind.VIDEO),
            MediaFile(Path("/films/Dune/VIDEO_TS"), MediaFileKind.VIDEO),
        ])
        assert movie.main_video.filename == "VIDEO_TS"

    def test_episodes_lookup(self) -> None:
        show = LibraryEntity.new_tv_show(title="Foo")
        video = MediaFile(Path("/series/Foo/Foo.S01E01E02.mkv"), MediaFileKind.VIDEO)
        for number in (1, 2):
            episode = LibraryEntity.new_episode(1, number)
            episode.add_media_file(video)
            show.episodes.append(episode)

        assert len(show.episodes_for_file(video)) == 2
        assert len(show.episodes_at(1, 2)) == 1
        assert show.episodes_at(2, 1) == []


class TestApplySidecar:
    """Tests pour le report des metadonnees des fichiers compagnons."""

    def test_movie_fields(self) -> None:
        movie = LibraryEntity.new_movie(title="inception")
        movie.apply_sidecar(SidecarMetadata(
            title=" Inception ",
            year=2010,
            imdb_id="tt1375666",
            tmdb_id=27205,
            movie_set="Nolan",
            edition="Extended Edition",
        ))

        assert movie.title == "Inception"
        assert movie.year == 2010
        assert movie.imdb_id == "tt1375666"
        assert movie.tmdb_id == 27205
        assert movie.details.movie_set == "Nolan"
        assert movie.details.edition is MovieEdition.EXTENDED

    def test_empty_fields_do_not_overwrite(self) -> None:
        movie = LibraryEntity.new_movie(title="Inception", year=2010)
        movie.apply_sidecar(SidecarMetadata())
        assert (movie.title, movie.year) == ("Inception", 2010)

    def test_locked_flag(self) -> None:
        movie = LibraryEntity.new_movie()
        movie.apply_sidecar(SidecarMetadata(locked=True))
        assert movie.locked

    def test_episode_fields(self) -> None:
        episode = LibraryEntity.new_episode(-1, -1)
        episode.apply_sidecar(SidecarMetadata(
            title="Pilot", season=1, episode=1, first_aired=date(2008, 1, 20)
        ))
        assert episode.title == "Pilot"
        assert (episode.details.season, episode.details.episode) == (1, 1)
        assert episode.details.first_aired == date(2008, 1, 20)
