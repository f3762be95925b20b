"""
Tests unitaires pour le rattachement des fichiers aux entites.
"""

from pathlib import Path

from src.core.entities import LibraryEntity
from src.core.value_objects import MediaFile, MediaFileKind
from src.services.scanning.classifier import PathClassifier
from src.services.scanning.media_assignment import (
    attach_files,
    attach_movie_files,
    fill_missing_artwork,
    promote_poster,
    remove_vanished_files,
)

FOLDER = Path("/films/Inception")


def _mf(name: str, kind: MediaFileKind) -> MediaFile:
    return MediaFile(FOLDER / name, kind)


class TestAttachFiles:
    """Tests pour le rattachement generique."""

    def test_attach_skips_known_and_unknown_files(self) -> None:
        entity = LibraryEntity.new_movie()
        video = _mf("Inception.mkv", MediaFileKind.VIDEO)
        entity.add_media_file(video)

        added = attach_files(entity, [
            _mf("Inception.mkv", MediaFileKind.VIDEO),
            _mf("Inception.srt", MediaFileKind.SUBTITLE),
            _mf("Inception.mkv.md5", MediaFileKind.UNKNOWN),
        ])

        assert [mf.filename for mf in added] == ["Inception.srt"]
        assert len(entity.media_files) == 2

    def test_orphan_artwork_is_demoted(self) -> None:
        entity = LibraryEntity.new_movie()
        poster = _mf("Other-poster.jpg", MediaFileKind.POSTER)

        attach_files(entity, [_mf("Inception.mkv", MediaFileKind.VIDEO), poster])

        assert poster.kind is MediaFileKind.GRAPHIC
        assert entity.has_media_file(poster)


class TestAttachMovieFiles:
    """Tests pour le rattachement des fichiers d'un film."""

    def test_videos_first_and_rejected_kinds(self) -> None:
        movie = LibraryEntity.new_movie()
        files = [
            _mf("poster.jpg", MediaFileKind.POSTER),
            _mf("random.jpg", MediaFileKind.GRAPHIC),
            _mf("season01-poster.jpg", MediaFileKind.SEASON_POSTER),
            _mf("Inception.mkv", MediaFileKind.VIDEO),
        ]

        attach_movie_files(movie, files)

        assert [mf.filename for mf in movie.media_files] == ["Inception.mkv", "poster.jpg"]

    def test_fanart_in_extrafanart_folder_is_ignored(self) -> None:
        movie = LibraryEntity.new_movie()
        stray = MediaFile(FOLDER / "extrafanart" / "fanart.jpg", MediaFileKind.FANART)

        attach_movie_files(movie, [_mf("Inception.mkv", MediaFileKind.VIDEO), stray])

        assert not movie.has_media_file(stray)


class TestArtworkPasses:
    """Tests pour la promotion d'affiche et la seconde passe tolerante."""

    def test_promote_poster_from_video_name(self) -> None:
        movie = LibraryEntity.new_movie(title="Inception")
        movie.add_media_file(_mf("Inception.mkv", MediaFileKind.VIDEO))
        image = _mf("Inception.jpg", MediaFileKind.GRAPHIC)

        promoted = promote_poster(movie, [image], movie.title)

        assert promoted is image
        assert image.kind is MediaFileKind.POSTER
        assert movie.has_media_file(image)

    def test_no_promotion_when_poster_exists(self) -> None:
        movie = LibraryEntity.new_movie()
        movie.add_media_file(_mf("poster.jpg", MediaFileKind.POSTER))
        assert promote_poster(movie, [_mf("Inception.jpg", MediaFileKind.GRAPHIC)]) is None

    def test_fill_missing_artwork(self) -> None:
        """Une image retrogradee reprend son role si l'entite n'en a aucun."""
        movie = LibraryEntity.new_movie()
        demoted = _mf("Other-fanart.jpg", MediaFileKind.GRAPHIC)
        movie.add_media_file(demoted)

        changed = fill_missing_artwork(movie, PathClassifier())

        assert changed == [demoted]
        assert demoted.kind is MediaFileKind.FANART

    def test_remove_vanished_files(self, tmp_path: Path) -> None:
        present = tmp_path / "Inception.mkv"
        present.touch()
        movie = LibraryEntity.new_movie()
        movie.add_media_files([
            MediaFile(present, MediaFileKind.VIDEO),
            MediaFile(tmp_path / "poster.jpg", MediaFileKind.POSTER),
        ])

        removed = remove_vanished_files(movie)

        assert [mf.filename for mf in removed] == ["poster.jpg"]
        assert [mf.filename for mf in movie.media_files] == ["Inception.mkv"]
