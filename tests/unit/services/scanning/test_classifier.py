"""
Tests unitaires pour la classification des fichiers par role.
"""

from pathlib import Path

import pytest

from src.core.value_objects import MediaFile, MediaFileKind
from src.services.scanning.classifier import (
    PathClassifier,
    demote_orphan_artwork,
    tag_double_extensions,
)

MOVIE_DIR = Path("/films/Inception")


@pytest.fixture
def classifier() -> PathClassifier:
    return PathClassifier()


class TestClassify:
    """Tests pour la deduction du type d'un fichier."""

    @pytest.mark.parametrize(
        "relative,expected",
        [
            ("Inception.mkv", MediaFileKind.VIDEO),
            ("Inception-trailer.mkv", MediaFileKind.TRAILER),
            ("Inception-sample.mkv", MediaFileKind.SAMPLE),
            ("Inception-extra.mkv", MediaFileKind.EXTRA),
            ("extras/Making of.mkv", MediaFileKind.EXTRA),
            ("Inception.nfo", MediaFileKind.NFO),
            ("Inception.mkv.vsmeta", MediaFileKind.VSMETA),
            ("Inception-mediainfo.xml", MediaFileKind.MEDIAINFO),
            ("Inception.fr.srt", MediaFileKind.SUBTITLE),
            ("Inception.ac3", MediaFileKind.AUDIO),
            ("theme.mp3", MediaFileKind.THEME),
            ("notes.txt", MediaFileKind.TEXT),
            ("Inception.mkv.md5", MediaFileKind.UNKNOWN),
        ],
    )
    def test_classify(self, classifier: PathClassifier, relative: str, expected: MediaFileKind) -> None:
        assert classifier.classify(MOVIE_DIR / relative) is expected

    def test_disc_folder_is_video(self, classifier: PathClassifier) -> None:
        """Un dossier BDMV represente le disque entier."""
        assert classifier.classify(MOVIE_DIR / "BDMV") is MediaFileKind.VIDEO

    def test_custom_video_extensions(self) -> None:
        from src.services.scanning import ScanConfig

        classifier = PathClassifier(ScanConfig(video_extensions=frozenset({".mkv"})))
        assert classifier.classify(MOVIE_DIR / "Inception.avi") is MediaFileKind.UNKNOWN


class TestImageKind:
    """Tests pour le role des illustrations."""

    @pytest.mark.parametrize(
        "relative,expected",
        [
            ("poster.jpg", MediaFileKind.POSTER),
            ("Inception-poster.jpg", MediaFileKind.POSTER),
            ("folder.jpg", MediaFileKind.POSTER),
            ("fanart.jpg", MediaFileKind.FANART),
            ("extrafanart/fanart1.jpg", MediaFileKind.EXTRAFANART),
            ("banner.png", MediaFileKind.BANNER),
            ("Inception-clearlogo.png", MediaFileKind.CLEARLOGO),
            ("season01-poster.jpg", MediaFileKind.SEASON_POSTER),
            ("season02-banner.jpg", MediaFileKind.SEASON_BANNER),
            ("season-specials-thumb.jpg", MediaFileKind.SEASON_THUMB),
            ("movieset-poster.jpg", MediaFileKind.GRAPHIC),
            ("random.jpg", MediaFileKind.GRAPHIC),
        ],
    )
    def test_image_kind(self, classifier: PathClassifier, relative: str, expected: MediaFileKind) -> None:
        assert classifier.classify(MOVIE_DIR / relative) is expected


class TestArtworkHelpers:
    """Tests pour la retrogradation des illustrations et les doubles extensions."""

    def test_demote_orphan_artwork(self) -> None:
        """Une affiche au nom d'une autre video devient une image non resolue."""
        video = MediaFile(MOVIE_DIR / "Inception.mkv", MediaFileKind.VIDEO)
        orphan = MediaFile(MOVIE_DIR / "Other-poster.jpg", MediaFileKind.POSTER)
        own = MediaFile(MOVIE_DIR / "Inception-poster.jpg", MediaFileKind.POSTER)

        assert demote_orphan_artwork(video, orphan) is True
        assert orphan.kind is MediaFileKind.GRAPHIC
        assert demote_orphan_artwork(video, own) is False
        assert own.kind is MediaFileKind.POSTER

    def test_stacked_video_keeps_artwork(self) -> None:
        """ "Film-poster.jpg" vaut aussi pour "Film.CD1.mkv"."""
        video = MediaFile(MOVIE_DIR / "Inception.CD1.mkv", MediaFileKind.VIDEO)
        poster = MediaFile(MOVIE_DIR / "Inception-poster.jpg", MediaFileKind.POSTER)
        assert demote_orphan_artwork(video, poster) is False

    def test_tag_double_extensions(self) -> None:
        video = MediaFile(MOVIE_DIR / "Inception.mkv", MediaFileKind.VIDEO)
        checksum = MediaFile(MOVIE_DIR / "Inception.mkv.md5", MediaFileKind.UNKNOWN)
        unrelated = MediaFile(MOVIE_DIR / "readme.xyz", MediaFileKind.UNKNOWN)

        tagged = tag_double_extensions([video, checksum, unrelated])

        assert tagged == [checksum]
        assert checksum.kind is MediaFileKind.DOUBLE_EXT
        assert unrelated.kind is MediaFileKind.UNKNOWN
