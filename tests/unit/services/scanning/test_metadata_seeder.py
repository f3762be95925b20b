"""
Tests unitaires pour MetadataSeeder et resolve_episode_records.
"""

from pathlib import Path
from unittest.mock import MagicMock

from src.core.entities import EntityKind
from src.core.ports.sidecar import ISidecarParser
from src.core.value_objects import EpisodeMatch, MediaFile, MediaFileKind, SidecarMetadata
from src.services.scanning import MetadataSeeder
from src.services.scanning.metadata_seeder import EpisodeSeed, resolve_episode_records


def _write(path: Path, content: str) -> MediaFile:
    path.write_text(content, encoding="utf-8")
    return MediaFile(path, MediaFileKind.NFO if path.suffix == ".nfo" else MediaFileKind.UNKNOWN)


def _vsmeta_title(path: Path, title: str, year: int) -> MediaFile:
    data = title.encode("utf-8")
    content = bytes([2 << 3 | 2, len(data)]) + data + bytes([5 << 3]) + _varint(year)
    path.write_bytes(content)
    return MediaFile(path, MediaFileKind.VSMETA)


def _varint(value: int) -> bytes:
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


class TestSeedMovie:
    """Tests pour les metadonnees de films."""

    def test_nfo(self, seeder: MetadataSeeder, tmp_path: Path) -> None:
        nfo = _write(
            tmp_path / "Inception.nfo",
            "<movie><title>Inception</title><year>2010</year></movie>",
        )
        video = MediaFile(tmp_path / "Inception.mkv", MediaFileKind.VIDEO)

        metadata = seeder.seed([video, nfo], EntityKind.MOVIE)

        assert metadata.title == "Inception"
        assert metadata.year == 2010

    def test_no_sidecar(self, seeder: MetadataSeeder, tmp_path: Path) -> None:
        video = MediaFile(tmp_path / "Inception.mkv", MediaFileKind.VIDEO)
        assert seeder.seed([video], EntityKind.MOVIE) is None

    def test_ids_from_unstructured_nfo(self, seeder: MetadataSeeder, tmp_path: Path) -> None:
        """Un NFO qui n'est pas du XML fournit au moins ses identifiants."""
        nfo = _write(
            tmp_path / "movie.nfo",
            "https://www.imdb.com/title/tt1375666/\nhttps://www.themoviedb.org/movie/27205",
        )

        metadata = seeder.seed([nfo], EntityKind.MOVIE)

        assert metadata.imdb_id == "tt1375666"
        assert metadata.tmdb_id == 27205
        assert metadata.title == ""

    def test_vsmeta_completes_nfo(self, seeder: MetadataSeeder, tmp_path: Path) -> None:
        nfo = _write(tmp_path / "Inception.nfo", "<movie><title>Inception</title></movie>")
        vsmeta = _vsmeta_title(tmp_path / "Inception.mkv.vsmeta", "Ignored", 2010)

        metadata = seeder.seed([vsmeta, nfo], EntityKind.MOVIE)

        assert metadata.title == "Inception"
        assert metadata.year == 2010

    def test_xml_used_without_nfo(self, seeder: MetadataSeeder, tmp_path: Path) -> None:
        xml = _write(tmp_path / "Inception.xml", "<movie><title>Inception</title></movie>")
        assert seeder.seed([xml], EntityKind.MOVIE).title == "Inception"

    def test_failing_parser_does_not_raise(self, tmp_path: Path) -> None:
        """Une exception d'un lecteur est absorbee et le fichier ignore."""
        parser = MagicMock(spec=ISidecarParser)
        parser.supports.return_value = True
        parser.parse.side_effect = RuntimeError("boom")
        seeder = MetadataSeeder([parser])
        nfo = MediaFile(tmp_path / "Inception.nfo", MediaFileKind.NFO)

        assert seeder.seed([nfo], EntityKind.MOVIE) is None


class TestSeedShow:
    """Tests pour tvshow.nfo."""

    def test_tvshow_nfo(self, seeder: MetadataSeeder, tmp_path: Path) -> None:
        _write(tmp_path / "tvshow.nfo", "<tvshow><title>Lost</title><year>2004</year></tvshow>")
        assert seeder.seed_show(tmp_path).title == "Lost"

    def test_missing_tvshow_nfo(self, seeder: MetadataSeeder, tmp_path: Path) -> None:
        assert seeder.seed_show(tmp_path) is None

    def test_tv_link_in_raw_nfo(self, seeder: MetadataSeeder, tmp_path: Path) -> None:
        _write(tmp_path / "tvshow.nfo", "https://www.themoviedb.org/tv/4607")
        assert seeder.seed_show(tmp_path).tmdb_id == 4607


class TestSeedEpisodes:
    """Tests pour les metadonnees d'episodes."""

    def test_multi_episode_nfo(self, seeder: MetadataSeeder, tmp_path: Path) -> None:
        nfo = _write(
            tmp_path / "Lost.S01E01E02.nfo",
            "<episodedetails><title>A</title><season>1</season><episode>1</episode></episodedetails>"
            "<episodedetails><title>B</title><season>1</season><episode>2</episode></episodedetails>",
        )

        seed = seeder.seed_episodes([nfo])

        assert [r.title for r in seed.records] == ["A", "B"]
        assert not seed.all_numbers_unknown

    def test_vsmeta_episode(self, seeder: MetadataSeeder, tmp_path: Path) -> None:
        vsmeta = _vsmeta_title(tmp_path / "Lost.S01E01.mkv.vsmeta", "Pilot", 2004)

        seed = seeder.seed_episodes([vsmeta])

        assert seed.records == []
        assert seed.vsmeta.title == "Pilot"


class TestResolveEpisodeRecords:
    """Tests pour le report de la numerotation du nom de fichier."""

    def test_without_records(self) -> None:
        assert resolve_episode_records(EpisodeSeed(), EpisodeMatch(season=1, episodes=[1])) == []

    def test_nfo_numbers_win(self) -> None:
        record = SidecarMetadata(title="Pilot", season=1, episode=1)
        seed = EpisodeSeed(records=[record])

        records = resolve_episode_records(seed, EpisodeMatch(season=3, episodes=[7]))

        assert records == [record]

    def test_unknown_numbers_use_filename(self) -> None:
        """Un NFO sans numero recoit ceux du nom ; les episodes manquants sont crees."""
        seed = EpisodeSeed(records=[SidecarMetadata(title="Pilot", plot="Resume")])

        records = resolve_episode_records(seed, EpisodeMatch(season=1, episodes=[1, 2]))

        assert [(r.season, r.episode) for r in records] == [(1, 1), (1, 2)]
        assert records[0].title == "Pilot"
        assert records[0].plot == "Resume"
        assert records[1].title == ""
