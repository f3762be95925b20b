"""
Vue de reference de la bibliotheque pendant un scan.

Le ReconciliationStore indexe les entites existantes par dossier racine,
fusionne les titres decouverts et supprime en fin de scan les fichiers et
entites qui ont disparu.

Regles de suppression :
- une entite verrouillee (locked) n'est jamais modifiee ni supprimee ;
- une entite creee pendant le scan (newly_added) n'est jamais nettoyee ;
- une entite n'est supprimee que si son dossier n'existe plus, ou si elle
  n'a plus aucune video apres retrait des fichiers disparus.
"""

import threading
from collections import defaultdict
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Optional

from loguru import logger

from src.core.entities import CandidateEntity, EntityKind, LibraryEntity, ShowDetails
from src.core.ports.feedback import IMessageSink
from src.core.ports.image_cache import IImageCache
from src.core.ports.repositories import ILibraryRepository
from src.core.value_objects import MediaFile, MediaFileKind
from src.services.scanning.disc_resolver import is_disc_folder_name
from src.services.scanning.messages import CLEANUP_IO_FAILURE, NO_VIDEO, MessageLevel
from src.services.scanning.session import ScanSession

_TOP_LEVEL_KINDS = (EntityKind.MOVIE, EntityKind.TV_SHOW, EntityKind.MOVIE_SET)


def entity_fingerprint(entity: LibraryEntity) -> tuple:
    """
    Empreinte des champs persistes d'une entite.

    Deux empreintes egales signifient qu'aucune sauvegarde n'est necessaire ;
    c'est ce qui rend un second scan sans changement silencieux.
    """
    files = tuple((str(mf.path), mf.kind.value) for mf in entity.media_files)
    details = entity.details
    if isinstance(details, ShowDetails):
        extra = (
            tuple(entity_fingerprint(ep) for ep in details.episodes),
            tuple(sorted((season, tuple(sorted(art.items()))) for season, art in details.season_artwork.items())),
        )
    else:
        extra = repr(details)
    return (
        entity.kind,
        entity.title,
        entity.original_title,
        entity.year,
        entity.plot,
        entity.path,
        entity.datasource,
        entity.locked,
        entity.imdb_id,
        entity.tmdb_id,
        entity.tvdb_id,
        files,
        extra,
    )


class ReconciliationStore:
    """
    Index en memoire de la bibliotheque, partage par les taches de scan.

    Les modifications d'une entite sont serialisees par son verrou propre
    (LibraryEntity.lock) ; des entites differentes peuvent etre modifiees
    en parallele. Les ecritures vers le repository passent par un verrou
    unique.

    Args:
        repository: Index persistant de la bibliotheque
        session: Session de scan en cours (chemins vus, annulation)
        image_cache: Cache des vignettes a invalider
        messages: Journal des messages utilisateur
    """

    def __init__(
        self,
        repository: ILibraryRepository,
        session: ScanSession,
        image_cache: Optional[IImageCache] = None,
        messages: Optional[IMessageSink] = None,
    ) -> None:
        self._repository = repository
        self._session = session
        self._image_cache = image_cache
        self._messages = messages
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._by_path: dict[Path, list[LibraryEntity]] = defaultdict(list)
        self._known: dict[int, LibraryEntity] = {}
        self._pending: dict[tuple[EntityKind, Path], LibraryEntity] = {}
        self.inserted = 0
        self.updated = 0
        self.removed = 0

        for kind in _TOP_LEVEL_KINDS:
            for entity in repository.all_entities(kind):
                # Deja enregistree : plus "nouvelle" pour ce scan
                entity.newly_added = False
                for episode in entity.episodes:
                    episode.newly_added = False
                self._register(entity)
        logger.debug(f"Bibliotheque chargee: {len(self._known)} entites")

    @property
    def session(self) -> ScanSession:
        return self._session

    # Index

    def _register(self, entity: LibraryEntity) -> None:
        with self._lock:
            self._known[id(entity)] = entity
            if entity.path is not None:
                self._by_path[entity.path].append(entity)

    def _unregister(self, entity: LibraryEntity) -> None:
        with self._lock:
            self._known.pop(id(entity), None)
            if entity.path is not None and entity in self._by_path.get(entity.path, []):
                self._by_path[entity.path].remove(entity)

    def is_known(self, entity: LibraryEntity) -> bool:
        with self._lock:
            return id(entity) in self._known

    def find(self, path: Path, kind: Optional[EntityKind] = None) -> Optional[LibraryEntity]:
        """Premiere entite dont le dossier racine est path."""
        found = self.find_all_at(path, kind)
        return found[0] if found else None

    def find_all_at(self, path: Path, kind: Optional[EntityKind] = None) -> list[LibraryEntity]:
        """Toutes les entites rattachees a un dossier (dossiers multi-titres)."""
        with self._lock:
            return [e for e in self._by_path.get(path, []) if kind is None or e.kind is kind]

    def find_by_video(
        self, path: Path, video: MediaFile, kind: EntityKind = EntityKind.MOVIE
    ) -> Optional[LibraryEntity]:
        """Entite du dossier possedant exactement ce fichier video."""
        for entity in self.find_all_at(path, kind):
            if entity.has_media_file(video):
                return entity
        return None

    def entities(
        self, kind: EntityKind, datasource: Optional[Path] = None
    ) -> list[LibraryEntity]:
        with self._lock:
            return [
                e
                for e in self._known.values()
                if e.kind is kind and (datasource is None or e.datasource == datasource)
            ]

    # Chemins vus

    def mark_seen(self, paths: Iterable[Path]) -> None:
        """Enregistre les chemins observes pendant ce scan."""
        self._session.mark_seen(paths)

    # Fusion

    @contextmanager
    def adopt(self, candidate: CandidateEntity) -> Iterator[Optional[LibraryEntity]]:
        """
        Fusionne un titre decouvert avec la bibliotheque.

        Fournit l'entite existante rattachee au meme dossier, ou une nouvelle
        entite (newly_added) initialisee depuis le candidat. La nouvelle
        entite n'est inseree qu'a la sortie du bloc, une fois complete ; si
        le bloc leve une exception, rien n'est enregistre.

        Fournit None si l'entite existante est verrouillee.

        Exemple:
            with store.adopt(candidate) as entity:
                if entity is None:
                    return
                attach_files(entity, candidate.files)
        """
        key = (candidate.kind, candidate.root)
        with self._lock:
            existing = next(
                (e for e in self._by_path.get(candidate.root, []) if e.kind is candidate.kind),
                None,
            ) or self._pending.get(key)
            if existing is None:
                existing = self._new_entity(candidate)
                self._pending[key] = existing

        try:
            if existing.locked and self.is_known(existing):
                logger.debug(f"Entite verrouillee, ignoree: {existing.path}")
                yield None
                return
            with self.edit(existing) as entity:
                yield entity
        finally:
            with self._lock:
                if self._pending.get(key) is existing:
                    del self._pending[key]

    @staticmethod
    def _new_entity(candidate: CandidateEntity) -> LibraryEntity:
        entity = LibraryEntity(
            kind=candidate.kind,
            title=candidate.title,
            year=candidate.year,
            path=candidate.root,
            datasource=candidate.datasource,
            newly_added=True,
        )
        if candidate.metadata is not None:
            entity.apply_sidecar(candidate.metadata)
        return entity

    @contextmanager
    def edit(self, entity: LibraryEntity) -> Iterator[LibraryEntity]:
        """
        Modifie une entite sous son verrou, puis l'enregistre si necessaire.

        Une entite inconnue est inseree ; une entite connue n'est sauvegardee
        que si ses champs persistes ont change.
        """
        with entity.lock:
            is_new = not self.is_known(entity)
            before = None if is_new else entity_fingerprint(entity)
            yield entity
            self._session.count_entity(entity)

            if is_new:
                if self._session.is_cancelled:
                    logger.debug(f"Scan annule, entite non enregistree: {entity.path}")
                    return
                self.insert(entity)
            elif self.is_known(entity) and entity_fingerprint(entity) != before:
                self.save(entity)

    def insert(self, entity: LibraryEntity) -> bool:
        """
        Insere une nouvelle entite.

        Un film sans video n'est jamais insere.

        Returns:
            True si l'entite a ete inseree
        """
        if entity.kind is EntityKind.MOVIE and not entity.has_video:
            logger.error(f"Film sans video, non enregistre: {entity.path}")
            self._push(MessageLevel.ERROR, NO_VIDEO, entity.path)
            return False
        with self._write_lock:
            self._repository.insert(entity)
            self.inserted += 1
        self._register(entity)
        logger.info(f"Nouvelle entite: {entity.title} ({entity.path})")
        return True

    def save(self, entity: LibraryEntity) -> None:
        with self._write_lock:
            self._repository.save(entity)
            self.updated += 1
        logger.debug(f"Entite mise a jour: {entity.title}")

    def remove(self, entity: LibraryEntity, reason: str = "") -> bool:
        """
        Supprime une entite de la bibliotheque.

        Returns:
            False si l'entite est verrouillee ou creee pendant ce scan
        """
        if entity.locked or entity.newly_added:
            logger.debug(f"Suppression refusee (verrouillee ou nouvelle): {entity.path}")
            return False
        with self._write_lock:
            self._repository.remove(entity)
            self.removed += 1
        self._unregister(entity)
        logger.info(f"Entite supprimee: {entity.title} ({entity.path}) {reason}".rstrip())
        return True

    # Nettoyage

    def cleanup_movies(self, movies: Iterable[LibraryEntity]) -> None:
        """
        Nettoie les films d'une source (ou d'une mise a jour ciblee).

        A n'appeler qu'apres la fin de toutes les taches de decouverte :
        la decision repose sur l'ensemble complet des chemins vus.
        """
        movies = [m for m in movies if not m.locked and self.is_known(m)]
        for movie in movies:
            if self._session.is_cancelled:
                return
            if not self._check_root(movie):
                continue

            with movie.lock:
                before = entity_fingerprint(movie)
                if not movie.newly_added:
                    self._drop_unseen_files(movie)
                    if not movie.has_video:
                        self.remove(movie, "(plus aucune video)")
                        continue
                if entity_fingerprint(movie) != before:
                    self.save(movie)

        self._collapse_disc_movies(movies)

    def _collapse_disc_movies(self, movies: list[LibraryEntity]) -> None:
        # Un dossier de disque ne peut pas contenir un second titre
        for movie in movies:
            if not self.is_known(movie) or not movie.details.disc:
                continue
            if movie.path is None or movie.path == movie.datasource:
                continue

            with movie.lock:
                before = entity_fingerprint(movie)
                for media_file in movie.media_files_of(MediaFileKind.VIDEO):
                    if not media_file.is_disc_file and not is_disc_folder_name(media_file.filename):
                        logger.debug(f"Video hors structure de disque retiree: {media_file.path}")
                        movie.remove_media_file(media_file)
                if movie.has_video and entity_fingerprint(movie) != before:
                    self.save(movie)

            for other in self.entities(EntityKind.MOVIE):
                if other is movie or other.path is None or other.locked:
                    continue
                if other.path != movie.path and other.path.is_relative_to(movie.path):
                    self.remove(other, f"(contenu dans le disque {movie.path.name})")

    def cleanup_shows(self, shows: Iterable[LibraryEntity]) -> None:
        """Nettoie les series donnees, puis leurs episodes."""
        for show in shows:
            if self._session.is_cancelled:
                return
            if show.locked or not self.is_known(show):
                continue
            if self._check_root(show):
                self.cleanup_show(show)

    def cleanup_show(self, show: LibraryEntity) -> None:
        """
        Retire les fichiers disparus d'une serie et de ses episodes.

        Un episode sans video est retire de la serie.
        """
        if show.locked:
            return
        with show.lock:
            before = entity_fingerprint(show)
            if not show.newly_added:
                for media_file in self._drop_unseen_files(show):
                    _forget_season_artwork(show, media_file.path)

            for episode in list(show.episodes):
                if episode.locked or episode.newly_added:
                    continue
                self._drop_unseen_files(episode)
                if not episode.has_video:
                    logger.info(
                        f"Episode supprime: {show.title} "
                        f"S{episode.details.season:02d}E{episode.details.episode:02d}"
                    )
                    show.episodes.remove(episode)

            if entity_fingerprint(show) != before:
                self.save(show)

    def _check_root(self, entity: LibraryEntity) -> bool:
        """
        Verifie le dossier racine d'une entite avant nettoyage.

        Returns:
            True si le nettoyage des fichiers peut continuer
        """
        if entity.path is None or self._session.was_seen(entity.path):
            return True
        if not _exists(entity.path):
            self.remove(entity, "(dossier absent)")
            return False
        # Present mais non parcouru (exclu entre-temps) : on ne touche a rien
        logger.warning(f"Dossier present mais non parcouru: {entity.path}")
        return False

    def _drop_unseen_files(self, entity: LibraryEntity) -> list[MediaFile]:
        removed = []
        for media_file in list(entity.media_files):
            if self._session.was_seen(media_file.path):
                continue
            if media_file.kind.is_artwork and not self._invalidate(media_file.path):
                continue
            logger.debug(f"Fichier disparu retire: {media_file.path}")
            entity.remove_media_file(media_file)
            removed.append(media_file)
        return removed

    def invalidate_artwork(self, files: Iterable[MediaFile]) -> None:
        """Invalide les vignettes des illustrations retirees d'une entite."""
        for media_file in files:
            if media_file.kind.is_artwork:
                self._invalidate(media_file.path)

    def _invalidate(self, path: Path) -> bool:
        if self._image_cache is None:
            return True
        try:
            self._image_cache.invalidate(path)
        except OSError as e:
            # Fichier conserve tant que sa vignette ne peut pas etre supprimee
            self._push(MessageLevel.WARNING, CLEANUP_IO_FAILURE, path, str(e))
            return False
        return True

    def _push(self, level: MessageLevel, key: str, subject: Optional[Path], detail: str = "") -> None:
        if self._messages is not None:
            self._messages.push(level, key, subject, detail)


def _forget_season_artwork(show: LibraryEntity, path: Path) -> None:
    for season, artwork in list(show.details.season_artwork.items()):
        for kind, artwork_path in list(artwork.items()):
            if artwork_path == path:
                del artwork[kind]
        if not artwork:
            del show.details.season_artwork[season]


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError:
        return False
