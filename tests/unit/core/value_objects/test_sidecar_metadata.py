"""
Tests pour SidecarMetadata et MediaFile.
"""

from pathlib import Path

from src.core.value_objects import UNKNOWN_NUMBER, MediaFile, MediaFileKind, SidecarMetadata


class TestSidecarMetadataMerge:
    """Tests pour la fusion des metadonnees de plusieurs fichiers compagnons."""

    def test_merge_fills_empty_fields_only(self) -> None:
        """Les valeurs deja renseignees ne sont jamais ecrasees."""
        nfo = SidecarMetadata(title="Inception", year=2010)
        vsmeta = SidecarMetadata(title="Autre titre", plot="Un voleur...", year=2011)

        merged = nfo.merge(vsmeta)

        assert merged.title == "Inception"
        assert merged.year == 2010
        assert merged.plot == "Un voleur..."

    def test_merge_none_returns_same(self) -> None:
        metadata = SidecarMetadata(title="Inception")
        assert metadata.merge(None) is metadata

    def test_season_zero_is_a_value(self) -> None:
        """La saison 0 (specials) est renseignee et n'est pas remplacee."""
        specials = SidecarMetadata(season=0, episode=3)
        merged = specials.merge(SidecarMetadata(season=2, episode=5))
        assert merged.season == 0
        assert merged.episode == 3

    def test_unknown_numbers_are_filled(self) -> None:
        merged = SidecarMetadata().merge(SidecarMetadata(season=1, episode=2))
        assert (merged.season, merged.episode) == (1, 2)

    def test_flags(self) -> None:
        assert not SidecarMetadata(title="  ").has_title
        assert SidecarMetadata(imdb_id="tt1375666", tmdb_id=27205).has_ids
        assert not SidecarMetadata(imdb_id="tt1375666").has_ids
        assert not SidecarMetadata(season=1, episode=UNKNOWN_NUMBER).has_episode_numbers


class TestMediaFile:
    """Tests pour l'objet valeur MediaFile."""

    def test_equality_uses_path_only(self) -> None:
        """Deux fichiers de meme chemin sont egaux meme si leur type differe."""
        path = Path("/films/Inception/poster.jpg")
        assert MediaFile(path, MediaFileKind.POSTER) == MediaFile(path, MediaFileKind.GRAPHIC)
        assert len({MediaFile(path, MediaFileKind.POSTER), MediaFile(path)}) == 1

    def test_basename_without_stacking(self) -> None:
        media_file = MediaFile(Path("/films/Film/Film.CD1.mkv"), MediaFileKind.VIDEO)
        assert media_file.basename_without_stacking == "Film"

    def test_extension_is_lowercase(self) -> None:
        assert MediaFile(Path("/films/Film/Film.MKV")).extension == "mkv"

    def test_disc_files(self) -> None:
        assert MediaFile(Path("/films/Film/BDMV/STREAM/00000.m2ts")).is_disc_file
        assert MediaFile(Path("/films/Film/VIDEO_TS/VTS_01_1.VOB")).is_disc_file
        assert not MediaFile(Path("/films/Film/Film.mkv")).is_disc_file

    def test_artwork_kinds(self) -> None:
        assert MediaFileKind.GRAPHIC.is_artwork
        assert MediaFileKind.SEASON_POSTER.is_season_artwork
        assert not MediaFileKind.VIDEO.is_artwork
