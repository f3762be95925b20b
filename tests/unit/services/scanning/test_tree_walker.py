"""
Tests unitaires pour TreeWalker (recherche des dossiers de titres et
collecte des fichiers d'un titre).
"""

from pathlib import Path

import pytest

from src.services.scanning import ScanConfig
from src.services.scanning.classifier import PathClassifier
from src.services.scanning.session import ScanSession
from src.services.scanning.skip_policy import SkipPolicy
from src.services.scanning.tree_walker import ScanTarget, TargetKind, TreeWalker


@pytest.fixture
def session() -> ScanSession:
    return ScanSession()


@pytest.fixture
def walker(session: ScanSession) -> TreeWalker:
    config = ScanConfig()
    return TreeWalker(SkipPolicy.for_movies(config), PathClassifier(config), session, config)


class TestFindVideoFolders:
    """Tests pour la recherche des dossiers contenant des videos."""

    def test_one_target_per_movie_folder(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        tree(movies_dir, "Inception/Inception.mkv", "Alien/Alien.mkv", "Alien/poster.jpg")

        targets = walker.find_video_folders(movies_dir, movies_dir)

        assert targets == [
            ScanTarget(TargetKind.SINGLE, movies_dir / "Alien"),
            ScanTarget(TargetKind.SINGLE, movies_dir / "Inception"),
        ]

    def test_folder_with_video_subfolder_is_multi(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        """Un dossier de videos contenant un autre dossier de videos est multi-titres."""
        tree(movies_dir, "Collection/Alien.mkv", "Collection/Aliens/Aliens.mkv")

        targets = walker.find_video_folders(movies_dir, movies_dir)

        assert targets == [
            ScanTarget(TargetKind.SINGLE, movies_dir / "Collection" / "Aliens"),
            ScanTarget(
                TargetKind.MULTI,
                movies_dir / "Collection",
                (movies_dir / "Collection" / "Alien.mkv",),
            ),
        ]

    def test_skip_file_excludes_folder(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        tree(movies_dir, "Inception/Inception.mkv", "Inception/.nomedia")
        assert walker.find_video_folders(movies_dir, movies_dir) == []

    def test_trailer_only_folder_ignored(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        tree(movies_dir, "Inception/Inception-trailer.mkv")
        assert walker.find_video_folders(movies_dir, movies_dir) == []

    def test_stacked_folders_give_one_target(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        """Film/CD1 et Film/CD2 ne produisent qu'un seul dossier a analyser."""
        tree(movies_dir, "Titanic/CD1/Titanic.avi", "Titanic/CD2/Titanic.avi")

        targets = walker.find_video_folders(movies_dir, movies_dir)

        assert targets == [ScanTarget(TargetKind.SINGLE, movies_dir / "Titanic" / "CD1")]

    def test_disc_structure(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        """Le contenu des sous-dossiers d'un disque n'est pas parcouru."""
        tree(movies_dir, "Avatar/BDMV/index.bdmv", "Avatar/BDMV/STREAM/00001.m2ts")

        targets = walker.find_video_folders(movies_dir, movies_dir)

        assert targets == [ScanTarget(TargetKind.SINGLE, movies_dir / "Avatar" / "BDMV")]

    def test_counters(self, walker: TreeWalker, session: ScanSession, movies_dir: Path, tree) -> None:
        tree(movies_dir, "Inception/Inception.mkv", "Inception/Inception.nfo")

        walker.find_video_folders(movies_dir, movies_dir)

        assert session.pre_dir == 2
        assert session.post_dir == 2
        assert session.visited_file == 2

    def test_cancelled(self, walker: TreeWalker, session: ScanSession, movies_dir: Path, tree) -> None:
        tree(movies_dir, "Inception/Inception.mkv")
        session.cancel()
        assert walker.find_video_folders(movies_dir, movies_dir) == []

    def test_symlink_cycle_visited_once(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        """Un lien symbolique vers un dossier parent ne boucle pas."""
        tree(movies_dir, "Inception/Inception.mkv")
        (movies_dir / "Inception" / "loop").symlink_to(movies_dir / "Inception", target_is_directory=True)

        targets = walker.find_video_folders(movies_dir, movies_dir)

        assert targets == [ScanTarget(TargetKind.SINGLE, movies_dir / "Inception")]


class TestCollectFiles:
    """Tests pour la liste des fichiers d'un titre."""

    def test_symlink_cycle_not_followed(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        folder = movies_dir / "Inception"
        tree(movies_dir, "Inception/Inception.mkv")
        (folder / "loop").symlink_to(folder, target_is_directory=True)

        assert walker.collect_files(folder) == {folder / "Inception.mkv"}

    def test_recursive_listing(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        folder = movies_dir / "Inception"
        tree(movies_dir, "Inception/Inception.mkv", "Inception/Subs/Inception.fr.srt", "Inception/.DS_Store")

        assert walker.collect_files(folder) == {
            folder / "Inception.mkv",
            folder / "Subs" / "Inception.fr.srt",
        }

    def test_disc_folder_is_returned_itself(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        """Un dossier BDMV represente le disque ; seuls ses NFO sont repris."""
        folder = movies_dir / "Avatar"
        tree(
            movies_dir,
            "Avatar/poster.jpg",
            "Avatar/BDMV/index.bdmv",
            "Avatar/BDMV/Avatar.nfo",
            "Avatar/BDMV/STREAM/00001.m2ts",
        )

        assert walker.collect_files(folder) == {
            folder / "poster.jpg",
            folder / "BDMV",
            folder / "BDMV" / "Avatar.nfo",
        }

    def test_skip_folder_content_ignored(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        folder = movies_dir / "Inception"
        tree(movies_dir, "Inception/Inception.mkv", "Inception/@eaDir/Inception.mkv.jpg")

        assert walker.collect_files(folder) == {folder / "Inception.mkv"}


class TestListings:
    """Tests pour les listings non recursifs."""

    def test_list_entries_skips_system_folders(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        tree(movies_dir, "Inception/", "@eaDir/", "$RECYCLE.BIN/")
        assert walker.list_entries(movies_dir) == [movies_dir / "Inception"]

    def test_list_files_only(self, walker: TreeWalker, movies_dir: Path, tree) -> None:
        tree(movies_dir, "Alien.mkv", "Aliens/Aliens.mkv", "VIDEO_TS/VIDEO_TS.IFO")
        assert walker.list_files_only(movies_dir) == [movies_dir / "Alien.mkv", movies_dir / "VIDEO_TS"]

    def test_missing_directory(self, walker: TreeWalker, tmp_path: Path) -> None:
        assert walker.list_entries(tmp_path / "absent") == []
