"""
Tests unitaires des marqueurs de decoupage (CD1, part2, dossiers CD1/CD2).
"""

import pytest

from src.utils.stacking import (
    clean_folder_stacking_markers,
    clean_stacking_markers,
    get_folder_stacking_marker,
    get_stacking_marker,
)


class TestCleanStackingMarkers:
    """Tests pour le retrait des marqueurs dans les noms de fichiers."""

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("Movie.Name.CD1.mkv", "Movie.Name.mkv"),
            ("Movie.Name.part2.avi", "Movie.Name.avi"),
            ("Movie.Name.cdb.mkv", "Movie.Name.mkv"),
        ],
    )
    def test_removes_marker_and_keeps_extension(self, filename: str, expected: str) -> None:
        """Le marqueur est retire, l'extension conservee."""
        assert clean_stacking_markers(filename) == expected

    def test_name_without_marker_is_unchanged(self) -> None:
        """Un nom sans marqueur est retourne tel quel."""
        assert clean_stacking_markers("Inception.2010.mkv") == "Inception.2010.mkv"

    def test_empty_name(self) -> None:
        assert clean_stacking_markers("") == ""


class TestStackingMarkers:
    """Tests pour l'extraction des marqueurs."""

    def test_file_marker(self) -> None:
        assert get_stacking_marker("Movie.Name.CD2.mkv") == "CD2"

    def test_no_file_marker(self) -> None:
        assert get_stacking_marker("Movie.Name.mkv") == ""

    def test_folder_marker(self) -> None:
        """Un dossier "CD1" est un marqueur a lui seul."""
        assert get_folder_stacking_marker("CD1") == "CD1"
        assert get_folder_stacking_marker("Movie Name CD2") == "CD2"

    def test_clean_folder_marker(self) -> None:
        assert clean_folder_stacking_markers("Movie Name CD1") == "Movie Name"
        assert clean_folder_stacking_markers("Movie Name") == "Movie Name"
