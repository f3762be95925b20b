"""
Scanner des sources de donnees de series.

Une tache par dossier de serie. Dans chaque serie :
1. recuperation (ou creation) de la serie, avec son tvshow.nfo ;
2. un ou plusieurs episodes par video (NFO d'episode prioritaire, sinon
   numerotation deduite du chemin, sinon episode -1/-1) ;
3. rattachement des fichiers restants aux episodes, puis a la serie ;
4. association des illustrations de saison a leur numero de saison.
"""

import re
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Union

from loguru import logger

from src.core.entities import CandidateEntity, EntityKind, LibraryEntity
from src.core.value_objects import (
    UNKNOWN_NUMBER,
    EpisodeMatch,
    MediaFile,
    MediaFileKind,
    MediaSource,
    SidecarMetadata,
)
from src.services.scanning.context import ScanContext, ScannerBase
from src.services.scanning.disc_resolver import is_disc_folder_name
from src.services.scanning.episode_parser import (
    SeasonEpisodeResolver,
    detect_season_from_file_and_folder,
)
from src.services.scanning.media_assignment import attach_files
from src.services.scanning.messages import (
    DATASOURCE_EMPTY,
    DATASOURCE_UNAVAILABLE,
    EPISODE_IN_ROOT,
    MessageLevel,
)
from src.services.scanning.metadata_seeder import EpisodeSeed, resolve_episode_records
from src.services.scanning.session import ScanSummary
from src.services.scanning.skip_policy import SkipPolicy
from src.services.scanning.title_parser import (
    detect_clean_title_and_year,
    detect_imdb_id,
    detect_tmdb_id,
    detect_tvdb_id,
)


class TvShowScanner(ScannerBase):
    """Met a jour la bibliotheque de series a partir des sources de donnees."""

    skip_policy_factory = staticmethod(SkipPolicy.for_tvshows)
    thread_name = "tvshow-scan"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._resolver = SeasonEpisodeResolver(self._config.badwords)

    # Points d'entree

    def update_datasources(self, datasources: Iterable[Path]) -> ScanSummary:
        """
        Scanne une liste de sources de donnees de series.

        Args:
            datasources: Racines a parcourir, dans l'ordre

        Returns:
            Le bilan du scan
        """
        context = self._start()
        for datasource in datasources:
            if context.cancelled:
                break
            self._scan_datasource(context, Path(datasource).expanduser().absolute())
        return self._finish(context)

    def update_tvshows(self, shows: Iterable[Union[LibraryEntity, Path]]) -> ScanSummary:
        """
        Rescanne uniquement les dossiers de series donnes.

        Une serie dont le dossier a disparu est supprimee au nettoyage.

        Args:
            shows: Series (ou leurs dossiers racines) a mettre a jour

        Returns:
            Le bilan du scan
        """
        context = self._start()
        roots: list[Path] = []
        for item in shows:
            if isinstance(item, LibraryEntity):
                if item.path is None:
                    continue
                show_dir, datasource = item.path, item.datasource
            else:
                show_dir = Path(item).expanduser().absolute()
                known = context.store.find(show_dir, EntityKind.TV_SHOW)
                datasource = known.datasource if known is not None else None
            roots.append(show_dir)

            if not show_dir.is_dir():
                logger.warning(f"Dossier de serie indisponible: {show_dir}")
                context.messages.push(MessageLevel.ERROR, DATASOURCE_UNAVAILABLE, show_dir)
                continue
            context.scheduler.submit(
                self._find_tv_show, context, datasource or show_dir.parent, show_dir,
                label=str(show_dir),
            )

        context.scheduler.wait_for_completion()
        self._log_stats(context)
        if not context.cancelled:
            shows_to_clean = [
                show for root in roots for show in context.store.find_all_at(root, EntityKind.TV_SHOW)
            ]
            context.store.cleanup_shows(shows_to_clean)
        return self._finish(context)

    # Sources de donnees

    def _scan_datasource(self, context: ScanContext, datasource: Path) -> None:
        if context.skip_policy.is_skip_folder(datasource):
            logger.debug(f"La source {datasource} est aussi un dossier exclu")
            return

        logger.info(f"Mise a jour de la source de series: {datasource}")
        if not datasource.is_dir():
            context.messages.push(MessageLevel.ERROR, DATASOURCE_UNAVAILABLE, datasource)
            return
        entries = context.walker.list_entries(datasource)
        if not entries:
            context.messages.push(MessageLevel.ERROR, DATASOURCE_EMPTY, datasource)
            return

        known = {show.path for show in context.store.entities(EntityKind.TV_SHOW)}
        new_dirs, existing_dirs = [], []
        for entry in entries:
            if not entry.is_dir():
                if entry.suffix.lower() in context.config.video_extensions:
                    logger.warning(f"Episode pose a la racine de la source: {entry.name}")
                    context.messages.push(MessageLevel.ERROR, EPISODE_IN_ROOT, entry)
                continue
            # Dossiers d'index alphabetique : A/Serie, B/Serie...
            if len(entry.name) == 1:
                show_dirs = [sub for sub in context.walker.list_entries(entry) if sub.is_dir()]
            else:
                show_dirs = [entry]
            for show_dir in show_dirs:
                (existing_dirs if show_dir in known else new_dirs).append(show_dir)
        logger.debug(f"{len(new_dirs)} nouvelles series, {len(existing_dirs)} series connues")

        for show_dir in new_dirs + existing_dirs:
            context.scheduler.submit(self._find_tv_show, context, datasource, show_dir, label=str(show_dir))

        context.scheduler.wait_for_completion()
        self._log_stats(context)
        if context.cancelled:
            return
        context.store.cleanup_shows(context.store.entities(EntityKind.TV_SHOW, datasource))

    @staticmethod
    def _log_stats(context: ScanContext) -> None:
        summary = context.session.summary()
        shows = context.store.entities(EntityKind.TV_SHOW)
        logger.info(f"Fichiers trouves: {summary.files_found}")
        logger.info(f"Series: {len(shows)}, episodes: {sum(len(s.episodes) for s in shows)}")
        logger.debug(
            f"Dossiers: {summary.pre_dir}/{summary.post_dir}, fichiers visites: {summary.visited_file}"
        )

    # Taches

    def _find_tv_show(self, context: ScanContext, datasource: Path, show_dir: Path) -> None:
        """Tache : analyse un dossier de serie complet."""
        context.started(show_dir.name)
        try:
            self._parse_show(context, datasource, show_dir)
        finally:
            context.finished()

    def _parse_show(self, context: ScanContext, datasource: Path, show_dir: Path) -> None:
        if context.skip_policy.is_skip_folder(show_dir):
            logger.debug(f"Dossier exclu: {show_dir}")
            return

        paths = context.walker.collect_files(show_dir)
        if not paths:
            logger.info(f"Dossier vide ignore: {show_dir}")
            return
        if context.cancelled:
            return

        logger.debug(f"Analyse de la serie: {show_dir}")
        context.store.mark_seen([show_dir, *paths])
        files = context.classifier.media_files(sorted(paths))
        _qualify_posters(show_dir, files)

        if not any(mf.kind is MediaFileKind.VIDEO for mf in files):
            logger.info(f"Aucune video dans {show_dir}")
            return

        existing = context.store.find(show_dir, EntityKind.TV_SHOW)
        if existing is not None and existing.locked:
            logger.info(f"Serie verrouillee, ignoree: {show_dir}")
            return

        candidate = CandidateEntity(
            kind=EntityKind.TV_SHOW, root=show_dir, datasource=datasource, files=files
        )
        if existing is None:
            candidate.metadata = context.seeder.seed_show(show_dir)
            candidate.title, candidate.year = detect_clean_title_and_year(
                show_dir.name, context.config.badwords
            )

        with context.store.adopt(candidate) as show:
            if show is None:
                return
            _apply_path_ids(show, show_dir)
            self._assign_episodes(context, show, show_dir, files)
            if context.cancelled:
                return
            self._assign_leftovers(show, show_dir, files)
            _map_season_artwork(show, show_dir)

    # Episodes

    def _assign_episodes(
        self, context: ScanContext, show: LibraryEntity, show_dir: Path, files: list[MediaFile]
    ) -> None:
        disc_roots: set[Path] = set()
        for video in [mf for mf in files if mf.kind is MediaFileKind.VIDEO]:
            if context.cancelled:
                return

            if video.is_disc_file:
                disc_root = _disc_root(video.path)
                if disc_root in disc_roots:
                    # Les autres fichiers du disque ont deja ete regroupes
                    continue
                disc_roots.add(disc_root)
                episode_files = [
                    mf
                    for mf in files
                    if mf.path.is_relative_to(disc_root) and mf.kind is not MediaFileKind.UNKNOWN
                ]
            else:
                episode_files = _same_named_files(show_dir, video, files)

            known = show.episodes_for_file(video)
            if known:
                for episode in known:
                    if episode.locked:
                        continue
                    attach_files(episode, episode_files, main_video=video)
                    episode.details.disc = video.is_disc_file
                    episode.details.multi_episode = len(known) > 1
                continue

            self._create_episodes(context, show, show_dir, video, episode_files)

    def _create_episodes(
        self,
        context: ScanContext,
        show: LibraryEntity,
        show_dir: Path,
        video: MediaFile,
        episode_files: list[MediaFile],
    ) -> None:
        seed = context.seeder.seed_episodes(episode_files)
        episode_files = [mf for mf in episode_files if mf.kind is not MediaFileKind.UNKNOWN]

        relative = video.path.relative_to(show_dir).as_posix()
        match = self._resolver.detect_from_relative_path(relative, show.title)

        records = resolve_episode_records(seed, match)
        if records:
            logger.debug(f"| Episode(s) decrit(s) par NFO: {relative}")
            for record in records:
                episode = self._new_episode(show, video, episode_files, record.season, record.episode)
                episode.apply_sidecar(record.merge(seed.vsmeta).merge(seed.xml))
                episode.details.multi_episode = len(records) > 1
                show.episodes.append(episode)
            return

        if self._add_stacked_part(show, video, match):
            return

        if match.episodes:
            name = match.name or video.stem
            for number in match.episodes:
                episode = self._new_episode(show, video, episode_files, match.season, number)
                episode.title = self._resolver.clean_episode_title(name, show.title)
                episode.details.first_aired = match.date
                episode.details.multi_episode = len(match.episodes) > 1
                _apply_secondary_sidecars(episode, seed)
                show.episodes.append(episode)
            return

        # Aucune numerotation : la video n'est jamais ignoree
        logger.debug(f"| Numerotation introuvable, episode -1/-1: {relative}")
        episode = self._new_episode(show, video, episode_files, UNKNOWN_NUMBER, UNKNOWN_NUMBER)
        episode.title = self._resolver.clean_episode_title(video.stem, show.title)
        episode.details.first_aired = match.date
        _apply_secondary_sidecars(episode, seed)
        show.episodes.append(episode)

    @staticmethod
    def _add_stacked_part(show: LibraryEntity, video: MediaFile, match: EpisodeMatch) -> bool:
        """
        Rattache "Episode.CD2" a l'episode existant "Episode.CD1".

        Returns:
            True si la video a ete rattachee a un episode existant
        """
        if len(match.episodes) != 1 or match.season == UNKNOWN_NUMBER or not match.stacking_marker_found:
            return False
        for episode in show.episodes_at(match.season, match.episodes[0]):
            main = episode.main_video
            if main is None or main.basename_without_stacking != video.basename_without_stacking:
                continue
            if episode.locked:
                return True
            logger.debug(f"| Partie supplementaire de l'episode: {video.filename}")
            if episode.details.media_source is MediaSource.UNKNOWN:
                episode.details.media_source = MediaSource.parse(main.path)
            if not episode.details.original_filename:
                episode.details.original_filename = video.filename
            episode.newly_added = True
            episode.add_media_file(video)
            return True
        return False

    @staticmethod
    def _new_episode(
        show: LibraryEntity, video: MediaFile, files: list[MediaFile], season: int, number: int
    ) -> LibraryEntity:
        path = _disc_root(video.path).parent if video.is_disc_file else video.folder
        episode = LibraryEntity.new_episode(
            season, number, path=path, datasource=show.datasource, newly_added=True
        )
        # La video traitee doit rester la video principale de l'episode
        attach_files(episode, [video, *(mf for mf in files if mf != video)], main_video=video)

        # Les identifiants du dossier de la serie ne concernent pas l'episode
        own_path = _relative_folder(show.path, video.path) + "/" + video.filename
        episode.imdb_id = detect_imdb_id(own_path)
        episode.tmdb_id = detect_tmdb_id(own_path)
        episode.tvdb_id = detect_tvdb_id(own_path)
        episode.details.media_source = MediaSource.parse(video.path)
        episode.details.original_filename = video.filename
        episode.details.disc = video.is_disc_file
        return episode

    # Fichiers restants

    def _assign_leftovers(self, show: LibraryEntity, show_dir: Path, files: list[MediaFile]) -> None:
        """Rattache aux episodes les fichiers restants numerotes, le reste a la serie."""
        leftovers = _without_episode_files(show, files)
        for media_file in leftovers:
            if media_file.kind.is_season_artwork or media_file.kind is MediaFileKind.UNKNOWN:
                continue
            relative = media_file.path.relative_to(show_dir).as_posix()
            match = self._resolver.detect_from_relative_path(relative, show.title)
            if match.season <= 0 or not match.episodes:
                continue
            for number in match.episodes:
                _attach_to_episode(show.episodes_at(match.season, number), media_file)

        attach_files(show, _without_episode_files(show, leftovers))


def _attach_to_episode(episodes: list[LibraryEntity], media_file: MediaFile) -> None:
    episodes = [ep for ep in episodes if not ep.locked]
    if len(episodes) == 1:
        episodes[0].add_media_file(media_file)
        return
    for episode in episodes:
        main = episode.main_video
        if main is None:
            continue
        stem = main.basename_without_stacking
        # Meme nom que la video, ou rangee dans un dossier portant ce nom
        if media_file.basename_without_stacking.startswith(stem) or media_file.folder.name == stem:
            episode.add_media_file(media_file)
            return


def _without_episode_files(show: LibraryEntity, files: Iterable[MediaFile]) -> list[MediaFile]:
    used = {mf for episode in show.episodes for mf in episode.media_files}
    return [mf for mf in files if mf not in used]


def _apply_secondary_sidecars(episode: LibraryEntity, seed: EpisodeSeed) -> None:
    """VSMETA puis XML ; le titre du XML remplace le titre deduit du nom de fichier."""
    metadata = SidecarMetadata().merge(seed.vsmeta).merge(seed.xml)
    if metadata == SidecarMetadata():
        return
    # Les numeros et la date deduits du chemin ne sont pas remplaces
    changes = {"season": UNKNOWN_NUMBER, "episode": UNKNOWN_NUMBER, "title": ""}
    if seed.xml is not None and seed.xml.has_title:
        changes["title"] = seed.xml.title
    if episode.details.first_aired is not None:
        changes["first_aired"] = None
    episode.apply_sidecar(replace(metadata, **changes))


def _same_named_files(show_dir: Path, video: MediaFile, files: list[MediaFile]) -> list[MediaFile]:
    """
    Fichiers du meme dossier portant le nom de la video (sous-titres, NFO, vignette...).

    Une image non resolue nommee comme l'episode devient sa vignette.
    """
    basename = f"{_relative_folder(show_dir, video.path)}/{video.basename_without_stacking}"
    pattern = re.compile(re.escape(basename) + r"[\s.,_-].*")

    matched = []
    for media_file in files:
        name = f"{_relative_folder(show_dir, media_file.path)}/{media_file.stem}"
        if name != basename and not pattern.fullmatch(name):
            continue
        if media_file.kind is MediaFileKind.GRAPHIC:
            media_file.kind = MediaFileKind.THUMB
        matched.append(media_file)
    return matched


def _relative_folder(show_dir: Path, path: Path) -> str:
    folder = path.parent
    return "" if folder == show_dir else folder.relative_to(show_dir).as_posix()


def _disc_root(path: Path) -> Path:
    """Dossier VIDEO_TS / BDMV / HVDVD_TS contenant un fichier de disque."""
    for candidate in (path, *path.parents):
        if is_disc_folder_name(candidate.name):
            return candidate
    return path.parent


def _qualify_posters(show_dir: Path, files: list[MediaFile]) -> None:
    # Une affiche dans un dossier de saison est une affiche de saison ;
    # plus bas dans l'arborescence, une simple image
    for media_file in files:
        if media_file.kind is not MediaFileKind.POSTER or media_file.folder == show_dir:
            continue
        if media_file.folder.parent == show_dir:
            media_file.kind = MediaFileKind.SEASON_POSTER
        else:
            media_file.kind = MediaFileKind.GRAPHIC


def _map_season_artwork(show: LibraryEntity, show_dir: Path) -> None:
    for media_file in show.media_files:
        if not media_file.kind.is_season_artwork:
            continue
        season = detect_season_from_file_and_folder(
            media_file.filename, _relative_folder(show_dir, media_file.path)
        )
        if season is None:
            logger.warning(f"Numero de saison introuvable pour {media_file.path}")
            continue
        logger.debug(f"Illustration de saison {season}: {media_file.filename}")
        show.details.season_artwork.setdefault(season, {})[media_file.kind.value] = media_file.path


def _apply_path_ids(show: LibraryEntity, show_dir: Path) -> None:
    """Complete les identifiants absents depuis le nom du dossier ("Lost [tvdbid-73739]")."""
    if not show.imdb_id:
        show.imdb_id = detect_imdb_id(show_dir.name)
    if show.tmdb_id == 0:
        show.tmdb_id = detect_tmdb_id(show_dir.name)
    if show.tvdb_id == 0:
        show.tvdb_id = detect_tvdb_id(show_dir.name)
