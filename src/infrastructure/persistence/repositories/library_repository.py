"""
Implementation SQLModel du repository de la bibliotheque.

Implemente ILibraryRepository : les entites de premier niveau (films,
series, collections) sont des lignes sans parent, les episodes des lignes
rattachees a leur serie par parent_id.

La bibliotheque est chargee une fois par execution dans un index en
memoire : les recherches par chemin ne touchent pas la base et les memes
objets LibraryEntity sont rendus a chaque appel.
"""

import json
import threading
from collections import defaultdict
from dataclasses import fields
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, TypeVar

from loguru import logger
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlmodel import Session, select
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_random_exponential,
)

from src.core.entities.library import EntityKind, LibraryEntity, ShowDetails
from src.core.exceptions import RepositoryError
from src.core.ports.repositories import ILibraryRepository
from src.core.value_objects import MediaFile, MediaFileKind, MediaSource, MovieEdition
from src.infrastructure.persistence.models import LibraryEntityModel

T = TypeVar("T")

_ENUM_FIELDS: dict[str, type[Enum]] = {
    "edition": MovieEdition,
    "media_source": MediaSource,
}
_PATH_FIELDS = {"nfo_file"}
_DATE_FIELDS = {"first_aired"}
_SKIPPED_FIELDS = {"episodes"}


def _is_locked_error(exc: BaseException) -> bool:
    return isinstance(exc, OperationalError) and "database is locked" in str(exc)


def with_db_retry(
    max_attempts: int = 5,
    max_wait: float = 2.0,
    on_retry: Optional[Callable[[], None]] = None,
):
    """
    Decorateur pour relancer une ecriture quand SQLite est verrouillee.

    Args:
        max_attempts: Nombre maximum de tentatives (defaut: 5)
        max_wait: Delai maximum entre les tentatives en secondes
        on_retry: Appele avant chaque nouvelle tentative (rollback de la session)

    Returns:
        Decorateur a appliquer sur une methode du repository
    """
    return retry(
        retry=retry_if_exception(_is_locked_error),
        wait=wait_random_exponential(multiplier=0.1, max=max_wait),
        stop=stop_after_attempt(max_attempts),
        before_sleep=(lambda _state: on_retry()) if on_retry else None,
        reraise=True,
    )


# Serialisation


def media_files_to_json(media_files: list[MediaFile]) -> Optional[str]:
    if not media_files:
        return None
    return json.dumps([{"path": str(mf.path), "kind": mf.kind.value} for mf in media_files])


def media_files_from_json(raw: Optional[str]) -> list[MediaFile]:
    if not raw:
        return []
    media_files = []
    for item in json.loads(raw):
        try:
            kind = MediaFileKind(item.get("kind", "unknown"))
        except ValueError:
            kind = MediaFileKind.UNKNOWN
        media_files.append(MediaFile(path=Path(item["path"]), kind=kind))
    return media_files


def details_to_json(details: Any) -> Optional[str]:
    """Serialise les champs specifiques d'une entite (hors episodes)."""
    data: dict[str, Any] = {}
    for f in fields(details):
        if f.name in _SKIPPED_FIELDS:
            continue
        value = getattr(details, f.name)
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, Path):
            value = str(value)
        elif isinstance(value, date):
            value = value.isoformat()
        elif f.name == "season_artwork":
            value = {
                str(season): {kind: str(path) for kind, path in artwork.items()}
                for season, artwork in value.items()
            }
        data[f.name] = value
    return json.dumps(data) if data else None


def apply_details_json(details: Any, raw: Optional[str]) -> None:
    """Restaure les champs specifiques serialises par details_to_json."""
    if not raw:
        return
    data = json.loads(raw)
    known = {f.name for f in fields(details)}
    for name, value in data.items():
        if name not in known or name in _SKIPPED_FIELDS:
            continue
        if value is not None:
            if name in _ENUM_FIELDS:
                value = _ENUM_FIELDS[name](value)
            elif name in _PATH_FIELDS:
                value = Path(value)
            elif name in _DATE_FIELDS:
                value = date.fromisoformat(value)
            elif name == "season_artwork":
                value = {
                    int(season): {kind: Path(path) for kind, path in artwork.items()}
                    for season, artwork in value.items()
                }
        setattr(details, name, value)


class SQLModelLibraryRepository(ILibraryRepository):
    """
    Repository SQLModel de la bibliotheque.

    Les ecritures sont serialisees par un verrou interne ; l'index en
    memoire est charge au premier acces.
    """

    def __init__(self, session: Session) -> None:
        """
        Initialise le repository avec une session SQLModel.

        Args:
            session: Session SQLModel active pour les operations DB
        """
        self._session = session
        self._lock = threading.RLock()
        self._entities: Optional[dict[int, LibraryEntity]] = None

    # Conversion

    def _to_entity(self, model: LibraryEntityModel) -> LibraryEntity:
        entity = LibraryEntity(
            kind=EntityKind(model.kind),
            id=model.id,
            title=model.title,
            original_title=model.original_title,
            year=model.year,
            plot=model.plot,
            path=Path(model.path) if model.path else None,
            datasource=Path(model.datasource) if model.datasource else None,
            media_files=media_files_from_json(model.media_files_json),
            locked=model.locked,
            imdb_id=model.imdb_id,
            tmdb_id=model.tmdb_id,
            tvdb_id=model.tvdb_id,
        )
        apply_details_json(entity.details, model.details_json)
        return entity

    def _fill_model(
        self, model: LibraryEntityModel, entity: LibraryEntity, parent_id: Optional[int]
    ) -> LibraryEntityModel:
        model.kind = entity.kind.value
        model.parent_id = parent_id
        model.title = entity.title
        model.original_title = entity.original_title
        model.year = entity.year
        model.plot = entity.plot
        model.path = str(entity.path) if entity.path else None
        model.datasource = str(entity.datasource) if entity.datasource else None
        model.locked = entity.locked
        model.imdb_id = entity.imdb_id
        model.tmdb_id = entity.tmdb_id
        model.tvdb_id = entity.tvdb_id
        model.media_files_json = media_files_to_json(entity.media_files)
        model.details_json = details_to_json(entity.details)
        model.updated_at = datetime.now()
        return model

    # Index

    def _index(self) -> dict[int, LibraryEntity]:
        with self._lock:
            if self._entities is None:
                self._entities = self._run("chargement de la bibliotheque", self._load)
            return self._entities

    def _load(self) -> dict[int, LibraryEntity]:
        models = self._session.exec(select(LibraryEntityModel)).all()
        entities: dict[int, LibraryEntity] = {}
        children: dict[int, list[LibraryEntity]] = defaultdict(list)
        for model in models:
            entity = self._to_entity(model)
            if model.parent_id is None:
                entities[model.id] = entity
            else:
                children[model.parent_id].append(entity)

        for parent_id, episodes in children.items():
            show = entities.get(parent_id)
            if show is None or not isinstance(show.details, ShowDetails):
                logger.warning(f"{len(episodes)} episode(s) sans serie (parent {parent_id})")
                continue
            show.details.episodes.extend(episodes)
        logger.debug(f"Bibliotheque chargee depuis la base: {len(entities)} entites")
        return entities

    # Lecture

    def find_by_root_path(
        self, path: Path, kind: Optional[EntityKind] = None
    ) -> Optional[LibraryEntity]:
        for entity in self.all_entities(kind):
            if entity.path == path:
                return entity
        return None

    def all_entities(self, kind: Optional[EntityKind] = None) -> Iterable[LibraryEntity]:
        with self._lock:
            entities = list(self._index().values())
        if kind is None:
            return entities
        return [entity for entity in entities if entity.kind is kind]

    # Ecriture

    def insert(self, entity: LibraryEntity) -> LibraryEntity:
        with self._lock:
            index = self._index()
            self._run(
                f"insertion de {entity.title}", self._insert, entity, entity_title=entity.title
            )
            index[entity.id] = entity
        return entity

    def save(self, entity: LibraryEntity) -> LibraryEntity:
        if entity.id is None:
            return self.insert(entity)
        with self._lock:
            self._index()
            self._run(
                f"enregistrement de {entity.title}", self._save, entity, entity_title=entity.title
            )
        return entity

    def remove(self, entity: LibraryEntity) -> bool:
        if entity.id is None:
            return False
        with self._lock:
            index = self._index()
            removed = self._run(
                f"suppression de {entity.title}", self._remove, entity, entity_title=entity.title
            )
            index.pop(entity.id, None)
        return removed

    def _run(
        self,
        action: str,
        operation: Callable[..., T],
        *args: Any,
        entity_title: Optional[str] = None,
    ) -> T:
        """
        Execute une operation avec relance sur verrou SQLite.

        Raises:
            RepositoryError: Si l'operation echoue definitivement
        """
        try:
            return with_db_retry(on_retry=self._session.rollback)(operation)(*args)
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error(f"Echec de la base de donnees ({action}): {e}")
            raise RepositoryError(f"Echec de {action}: {e}", entity_title) from e

    def _insert(self, entity: LibraryEntity) -> None:
        model = self._fill_model(LibraryEntityModel(kind=entity.kind.value), entity, None)
        self._session.add(model)
        self._session.flush()
        entity.id = model.id
        self._sync_episodes(entity)
        self._session.commit()

    def _save(self, entity: LibraryEntity) -> None:
        model = self._session.get(LibraryEntityModel, entity.id)
        if model is None:
            model = LibraryEntityModel(id=entity.id, kind=entity.kind.value)
        self._session.add(self._fill_model(model, entity, None))
        self._sync_episodes(entity)
        self._session.commit()

    def _remove(self, entity: LibraryEntity) -> bool:
        model = self._session.get(LibraryEntityModel, entity.id)
        if model is None:
            return False
        children = select(LibraryEntityModel).where(LibraryEntityModel.parent_id == entity.id)
        for child in self._session.exec(children).all():
            self._session.delete(child)
        self._session.delete(model)
        self._session.commit()
        return True

    def _sync_episodes(self, show: LibraryEntity) -> None:
        """Aligne les lignes d'episodes sur la liste d'episodes de la serie."""
        if show.kind is not EntityKind.TV_SHOW:
            return
        statement = select(LibraryEntityModel).where(LibraryEntityModel.parent_id == show.id)
        existing = {model.id: model for model in self._session.exec(statement).all()}

        for episode in show.episodes:
            model = existing.pop(episode.id, None) if episode.id is not None else None
            if model is None:
                model = LibraryEntityModel(kind=episode.kind.value)
            self._session.add(self._fill_model(model, episode, show.id))
            self._session.flush()
            episode.id = model.id

        for orphan in existing.values():
            self._session.delete(orphan)
