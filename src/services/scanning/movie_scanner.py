"""
Scanner des sources de donnees de films.

Deroulement d'une mise a jour de source :
1. verification de la source (existence, contenu) ;
2. une tache par dossier de premier niveau (nouveaux dossiers d'abord),
   plus une tache pour les fichiers poses a la racine ;
3. attente de toutes les taches (barriere) ;
4. nettoyage des films de la source.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from loguru import logger

from src.core.entities import CandidateEntity, EntityKind, LibraryEntity
from src.core.value_objects import (
    MediaFile,
    MediaFileKind,
    MediaSource,
    MovieEdition,
    SidecarMetadata,
)
from src.core.value_objects.release_info import parse_edition
from src.services.scanning.classifier import tag_double_extensions
from src.services.scanning.context import ScanContext, ScannerBase
from src.services.scanning.disc_resolver import DiscFolderResolver, is_disc_folder_name
from src.services.scanning.media_assignment import (
    attach_movie_files,
    fill_missing_artwork,
    promote_poster,
    remove_vanished_files,
)
from src.services.scanning.messages import (
    AMBIGUOUS_MATCH,
    DATASOURCE_DISC_AT_ROOT,
    DATASOURCE_EMPTY,
    DATASOURCE_UNAVAILABLE,
    MessageLevel,
)
from src.services.scanning.session import ScanSummary
from src.services.scanning.title_grouper import TitleCluster, TitleGrouper
from src.services.scanning.title_parser import (
    detect_clean_title_and_year,
    detect_imdb_id,
    detect_tmdb_id,
)
from src.services.scanning.tree_walker import TargetKind
from src.utils.constants import BDINFO_TITLE_REGEX, BDMT_TITLE_REGEX, THREE_D_REGEX
from src.utils.stacking import get_folder_stacking_marker

BDMT_FILE = Path("BDMV") / "META" / "DL" / "bdmt_eng.xml"


class MovieScanner(ScannerBase):
    """
    Met a jour la bibliotheque de films a partir des sources de donnees.

    Chaque appel public cree sa propre session de scan ; le scanner peut
    donc etre reutilise, mais pas pour deux scans simultanes.
    """

    thread_name = "movie-scan"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._disc_resolver = DiscFolderResolver()
        self._grouper = TitleGrouper()

    # Points d'entree

    def update_datasources(self, datasources: Iterable[Path]) -> ScanSummary:
        """
        Scanne une liste de sources de donnees de films.

        Les collections (movie sets) sont lues en premier si un dossier de
        collections est configure.

        Args:
            datasources: Racines a parcourir, dans l'ordre

        Returns:
            Le bilan du scan (toujours produit, meme en cas d'erreur partielle)
        """
        context = self._start()
        if self._config.movieset_data_folder is not None:
            self._scan_movie_sets(context, self._config.movieset_data_folder)

        for datasource in datasources:
            if context.cancelled:
                break
            self._scan_datasource(context, Path(datasource).expanduser().absolute())
        return self._finish(context)

    def update_movies(self, movies: Iterable[Union[LibraryEntity, Path]]) -> ScanSummary:
        """
        Rescanne uniquement les dossiers de films donnes.

        Args:
            movies: Films (ou leurs dossiers racines) a mettre a jour

        Returns:
            Le bilan du scan
        """
        context = self._start()
        by_datasource: dict[Path, list[LibraryEntity]] = {}
        for item in movies:
            path = item.path if isinstance(item, LibraryEntity) else Path(item).expanduser().absolute()
            found = context.store.find_all_at(path, EntityKind.MOVIE) if path else []
            if not found:
                logger.warning(f"Aucun film connu pour {path}")
                continue
            for movie in found:
                if movie.locked:
                    logger.info(f"Film verrouille, ignore: {movie.path}")
                    continue
                by_datasource.setdefault(movie.datasource, []).append(movie)

        for datasource, group in by_datasource.items():
            if context.cancelled:
                break
            if not self._check_datasource(context, datasource):
                continue
            submitted: set[Path] = set()
            for movie in group:
                if movie.path in submitted:
                    continue
                submitted.add(movie.path)
                context.scheduler.submit(
                    self._find_movies, context, datasource, movie.path, label=str(movie.path)
                )
            context.scheduler.wait_for_completion()
            if context.cancelled:
                break
            context.store.cleanup_movies(group)
        return self._finish(context)

    def update_movie_sets(self) -> ScanSummary:
        """Lit les NFO du dossier de collections et met a jour les collections."""
        context = self._start()
        folder = self._config.movieset_data_folder
        if folder is None:
            logger.info("Aucun dossier de collections configure")
        else:
            self._scan_movie_sets(context, folder)
        return self._finish(context)

    # Sources de donnees

    def _check_datasource(self, context: ScanContext, datasource: Optional[Path]) -> bool:
        if datasource is None or not datasource.is_dir():
            context.messages.push(MessageLevel.ERROR, DATASOURCE_UNAVAILABLE, datasource)
            return False
        if not context.walker.list_entries(datasource):
            context.messages.push(MessageLevel.ERROR, DATASOURCE_EMPTY, datasource)
            return False
        return True

    def _scan_datasource(self, context: ScanContext, datasource: Path) -> None:
        if context.skip_policy.is_skip_folder(datasource):
            logger.debug(f"La source {datasource} est aussi un dossier exclu")
            return

        logger.info(f"Mise a jour de la source de films: {datasource}")
        if not datasource.is_dir():
            context.messages.push(MessageLevel.ERROR, DATASOURCE_UNAVAILABLE, datasource)
            return
        entries = context.walker.list_entries(datasource)
        if not entries:
            # Source hors ligne probable (point de montage vide)
            context.messages.push(MessageLevel.ERROR, DATASOURCE_EMPTY, datasource)
            return

        known = {movie.path for movie in context.store.entities(EntityKind.MOVIE)}
        new_dirs, existing_dirs, root_files = [], [], []
        for entry in entries:
            if not entry.is_dir():
                root_files.append(entry)
            elif is_disc_folder_name(entry.name):
                context.messages.push(MessageLevel.WARNING, DATASOURCE_DISC_AT_ROOT, entry)
            elif entry in known:
                existing_dirs.append(entry)
            else:
                new_dirs.append(entry)
        logger.debug(f"{len(new_dirs)} nouveaux dossiers, {len(existing_dirs)} dossiers connus")

        for folder in new_dirs + existing_dirs:
            context.scheduler.submit(self._find_movies, context, datasource, folder, label=str(folder))
        if root_files:
            context.scheduler.submit(
                self._create_multi_movie, context, datasource, datasource, root_files,
                label=str(datasource),
            )

        context.scheduler.wait_for_completion()
        summary = context.session.summary()
        logger.info(f"Fichiers trouves: {summary.files_found}")
        logger.debug(
            f"Dossiers: {summary.pre_dir}/{summary.post_dir}, fichiers visites: {summary.visited_file}"
        )
        if context.cancelled:
            return
        context.store.cleanup_movies(context.store.entities(EntityKind.MOVIE, datasource))

    # Taches

    def _find_movies(self, context: ScanContext, datasource: Path, folder: Path) -> None:
        """Tache : cherche et analyse les films sous un dossier de premier niveau."""
        context.started(str(folder))
        try:
            for target in context.walker.find_video_folders(datasource, folder):
                if context.cancelled:
                    return
                if target.kind is TargetKind.MULTI:
                    self._create_multi_movie(context, datasource, target.directory, list(target.files))
                else:
                    self._parse_movie_directory(context, datasource, target.directory)
        finally:
            context.finished()

    def _parse_movie_directory(self, context: ScanContext, datasource: Path, movie_dir: Path) -> None:
        """Determine si un dossier est un disque, un film seul ou un dossier multi-titres."""
        files: list[Path] = []
        basenames: set[str] = set()
        is_disc = False
        video_found = False

        for path in context.walker.list_entries(movie_dir):
            if path.is_file():
                files.append(path)
                media_file = context.classifier.media_file(path)
                if media_file.kind is not MediaFileKind.VIDEO:
                    continue
                video_found = True
                if media_file.is_disc_file:
                    is_disc = True
                    break
                basenames.add(media_file.basename_without_stacking)
            elif is_disc_folder_name(path.name):
                video_found = True
                is_disc = True

        if not video_found:
            # Bandes-annonces ou echantillons seulement
            return

        movie_root = movie_dir
        if is_disc:
            movie_root = self._disc_resolver.resolve(movie_dir, datasource, is_file=False)
            if movie_root == datasource:
                context.messages.push(MessageLevel.WARNING, DATASOURCE_DISC_AT_ROOT, movie_dir)
                return
        elif not basenames:
            return

        if context.cancelled:
            return
        if not is_disc and (len(basenames) > 1 or movie_dir == datasource):
            self._create_multi_movie(context, datasource, movie_root, files)
        else:
            self._create_single_movie(context, datasource, movie_root, is_disc)

    # Film seul

    def _create_single_movie(
        self, context: ScanContext, datasource: Path, movie_dir: Path, is_disc: bool
    ) -> None:
        logger.info(f"Analyse du dossier de film: {movie_dir} (disque: {is_disc})")

        # Film/CD1 et Film/CD2 : on remonte d'un niveau
        marker = get_folder_stacking_marker(movie_dir.name)
        if marker and marker == movie_dir.name:
            movie_dir = movie_dir.parent

        paths = context.walker.collect_files(movie_dir)
        if context.cancelled:
            return
        context.store.mark_seen([movie_dir, *paths])
        files = context.classifier.media_files(sorted(paths))

        existing = context.store.find(movie_dir, EntityKind.MOVIE)
        if existing is not None and existing.locked:
            logger.info(f"Film verrouille, ignore: {movie_dir}")
            return

        candidate = CandidateEntity(
            kind=EntityKind.MOVIE,
            root=movie_dir,
            datasource=datasource,
            files=files,
            is_disc=is_disc,
        )
        if existing is None:
            logger.debug("| Film inconnu, lecture des NFO")
            candidate.metadata = context.seeder.seed(files, EntityKind.MOVIE)
            self._guess_title(context, candidate)

        with context.store.adopt(candidate) as movie:
            if movie is None:
                return
            self._fill_from_text_files(movie, files)

            tag_double_extensions(files)
            self._add_movie_files(movie, files)
            promote_poster(movie, files, movie.title)
            fill_missing_artwork(movie, context.classifier)

            removed = remove_vanished_files(movie)
            context.store.invalidate_artwork(removed)
            if any(mf.kind is MediaFileKind.VIDEO for mf in removed) and movie.has_video:
                # Video remplacee : le film est traite comme nouveau
                movie.newly_added = True

            if movie.newly_added:
                self._first_import_flags(movie, movie_dir.name, candidate.videos)
            movie.details.disc = is_disc
            movie.details.offline = any(v.extension == "disc" for v in movie.media_files_of(MediaFileKind.VIDEO))

    def _guess_title(self, context: ScanContext, candidate: CandidateEntity) -> None:
        """Titre et annee d'un nouveau film sans titre dans ses NFO."""
        metadata = candidate.metadata or SidecarMetadata()
        if metadata.has_title:
            return

        bdinfo_title = ""
        video_name = ""
        for media_file in candidate.files:
            if media_file.kind is MediaFileKind.TEXT:
                bdinfo_title = _read_bdinfo_title(media_file.path) or bdinfo_title
            elif media_file.kind is MediaFileKind.VIDEO:
                video_name = media_file.stem

        bdmt_title = ""
        if candidate.is_disc:
            bdmt_title = _read_bdmt_title(candidate.root / BDMT_FILE)
            video_name = candidate.root.name

        title, year = detect_clean_title_and_year(candidate.root.name, context.config.badwords)
        if bdmt_title:
            # Le titre d'auteur du disque prime sur le nom du dossier
            bdmt_clean, bdmt_year = detect_clean_title_and_year(bdmt_title, context.config.badwords)
            title = bdmt_clean or title
            year = bdmt_year or year

        if not title.strip():
            title = bdinfo_title or video_name
        candidate.title = title
        candidate.year = metadata.year or year or 0

    @staticmethod
    def _fill_from_text_files(movie: LibraryEntity, files: list[MediaFile]) -> None:
        if movie.imdb_id:
            return
        for media_file in files:
            if media_file.kind is not MediaFileKind.TEXT:
                continue
            try:
                text = media_file.path.read_text(encoding="utf-8", errors="replace")
            except OSError:
                logger.debug(f"| Lecture impossible du texte {media_file.filename}")
                continue
            imdb_id = detect_imdb_id(text)
            if imdb_id:
                logger.debug(f"| Identifiant IMDB trouve: {imdb_id}")
                movie.imdb_id = imdb_id
                return

    # Dossier multi-titres

    def _create_multi_movie(
        self, context: ScanContext, datasource: Path, movie_dir: Path, paths: list[Path]
    ) -> None:
        """Cree ou met a jour un film par video d'un dossier multi-titres."""
        logger.info(f"Analyse du dossier multi-titres: {movie_dir}")
        context.store.mark_seen([movie_dir, *paths])
        files = context.classifier.media_files(paths)

        if movie_dir == datasource:
            discs = [mf for mf in files if mf.kind is MediaFileKind.VIDEO and mf.is_disc_file]
            if discs:
                context.messages.push(MessageLevel.WARNING, DATASOURCE_DISC_AT_ROOT, discs[0].path)
                files = [mf for mf in files if mf not in discs]

        for cluster in self._grouper.partition(files):
            if context.cancelled:
                return
            self._adopt_cluster(context, datasource, movie_dir, cluster)

    def _adopt_cluster(
        self, context: ScanContext, datasource: Path, movie_dir: Path, cluster: TitleCluster
    ) -> None:
        # Correspondance stricte par fichier video : une autre version du
        # meme titre (meme nom nettoye) reste un film distinct
        movie = None
        for video in cluster.videos:
            movie = context.store.find_by_video(movie_dir, video)
            if movie is not None:
                break

        if movie is not None and movie.locked:
            logger.info(f"Film verrouille, ignore: {movie.title}")
            return

        if movie is None:
            movie = self._new_multi_movie(context, datasource, cluster)

        with context.store.edit(movie):
            video = cluster.video
            if not movie.imdb_id:
                movie.imdb_id = detect_imdb_id(str(video.path))
            if movie.tmdb_id == 0:
                movie.tmdb_id = detect_tmdb_id(str(video.path))
            if movie.details.media_source is MediaSource.UNKNOWN:
                movie.details.media_source = MediaSource.parse(video.path)
            movie.details.multi_movie_dir = True

            self._add_movie_files(movie, cluster.files)
            context.store.invalidate_artwork(remove_vanished_files(movie))
            movie.details.offline = any(v.extension == "disc" for v in movie.media_files_of(MediaFileKind.VIDEO))

    def _new_multi_movie(
        self, context: ScanContext, datasource: Path, cluster: TitleCluster
    ) -> LibraryEntity:
        logger.debug(f"| Nouveau film depuis le fichier: {cluster.video.filename}")
        movie = LibraryEntity.new_movie(
            path=cluster.video.folder,
            datasource=datasource,
            newly_added=True,
        )
        metadata = context.seeder.seed(cluster.files, EntityKind.MOVIE)
        if metadata is not None:
            movie.apply_sidecar(metadata)
        if not movie.title:
            title, year = detect_clean_title_and_year(cluster.basename, context.config.badwords)
            movie.title = title
            if year and not movie.year:
                movie.year = year
            movie.details.edition, movie.details.edition_label = parse_edition(cluster.basename)
            if THREE_D_REGEX.search(cluster.basename):
                movie.details.video_in_3d = True
        movie.details.original_filename = cluster.video.filename
        return movie

    # Rattachement

    @staticmethod
    def _add_movie_files(movie: LibraryEntity, files: Iterable[MediaFile]) -> None:
        """Rattache les fichiers et complete support et identifiants depuis les chemins."""
        for media_file in attach_movie_files(movie, files):
            if media_file.is_disc_file and movie.details.media_source is MediaSource.UNKNOWN:
                movie.details.media_source = MediaSource.parse(media_file.path)
            if not movie.imdb_id:
                movie.imdb_id = detect_imdb_id(str(media_file.path))
            if movie.tmdb_id == 0:
                movie.tmdb_id = detect_tmdb_id(str(media_file.path))
            if media_file.kind is MediaFileKind.VIDEO and movie.details.media_source is MediaSource.UNKNOWN:
                movie.details.media_source = MediaSource.parse(media_file.path)

    @staticmethod
    def _first_import_flags(movie: LibraryEntity, folder_name: str, videos: list[MediaFile]) -> None:
        """Relief, nom d'origine, support et edition, calcules a l'import seulement."""
        if THREE_D_REGEX.search(folder_name):
            movie.details.video_in_3d = True
        if videos:
            video = videos[0]
            if THREE_D_REGEX.search(video.filename):
                movie.details.video_in_3d = True
            if not movie.details.original_filename:
                movie.details.original_filename = video.filename
            source = MediaSource.parse(video.path)
            if source is not MediaSource.UNKNOWN:
                movie.details.media_source = source
        if movie.details.edition is MovieEdition.NONE:
            movie.details.edition, movie.details.edition_label = parse_edition(folder_name)

    # Collections

    def _scan_movie_sets(self, context: ScanContext, folder: Path) -> None:
        if not folder.is_dir():
            context.messages.push(MessageLevel.WARNING, DATASOURCE_UNAVAILABLE, folder)
            return
        logger.info(f"Lecture des collections: {folder}")

        for path in sorted(context.walker.collect_files(folder)):
            if path.suffix.lower() != ".nfo" or context.cancelled:
                continue
            nfo = MediaFile(path=path, kind=MediaFileKind.NFO)
            metadata = context.seeder.seed([nfo], EntityKind.MOVIE_SET)
            if metadata is None or not metadata.has_title:
                logger.debug(f"NFO de collection sans titre: {path}")
                continue

            movie_set, ambiguous = self._match_movie_set(context, path, metadata)
            if ambiguous:
                context.messages.push(MessageLevel.INFO, AMBIGUOUS_MATCH, path, metadata.title)
                continue
            if movie_set is None:
                movie_set = LibraryEntity.new_movie_set(title=metadata.title.strip(), newly_added=True)
                movie_set.apply_sidecar(metadata)
            elif movie_set.locked:
                continue

            with context.store.edit(movie_set):
                movie_set.add_media_file(nfo)
                movie_set.details.nfo_file = path

    @staticmethod
    def _match_movie_set(
        context: ScanContext, nfo_path: Path, metadata: SidecarMetadata
    ) -> tuple[Optional[LibraryEntity], bool]:
        """
        Recherche une collection existante : par fichier NFO, identifiant TMDB, puis titre.

        Returns:
            (collection, ambigue) ; ambigue si plusieurs collections portent le titre
        """
        movie_sets = context.store.entities(EntityKind.MOVIE_SET)
        for movie_set in movie_sets:
            if any(mf.path == nfo_path for mf in movie_set.media_files_of(MediaFileKind.NFO)):
                return movie_set, False
        if metadata.tmdb_id > 0:
            for movie_set in movie_sets:
                if movie_set.tmdb_id == metadata.tmdb_id:
                    return movie_set, False
        same_title = [s for s in movie_sets if s.title == metadata.title.strip()]
        if len(same_title) > 1:
            return None, True
        return (same_title[0] if same_title else None), False


def _read_bdinfo_title(path: Path) -> str:
    """Titre du disque dans un dump BDInfo ("Disc Title: ..."), en casse titre."""
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        logger.debug(f"| Lecture impossible du texte {path.name}")
        return ""
    match = BDINFO_TITLE_REGEX.search(text)
    if not match:
        return ""
    logger.debug(f"| Titre BDInfo trouve: {match.group(1)}")
    return match.group(1).strip().title()


def _read_bdmt_title(path: Path) -> str:
    """Titre de disque dans BDMV/META/DL/bdmt_eng.xml."""
    if not path.is_file():
        return ""
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return ""
    # Espaces de noms exotiques : lecture par motif plutot que par parseur XML
    match = BDMT_TITLE_REGEX.search(text)
    return match.group(1).strip() if match else ""
