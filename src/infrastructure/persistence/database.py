"""
Configuration de la base de donnees SQLite pour CineScan.

Ce module fournit :
- Engine SQLite utilisable depuis les threads du scan
- Session factory
- Fonction d'initialisation des tables

La base de donnees est configuree via CINESCAN_DATABASE_URL
(defaut: sqlite:///~/.local/share/cinescan/cinescan.db).
"""

from collections.abc import Generator
from pathlib import Path
from typing import Optional

from loguru import logger
from sqlalchemy import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

_SQLITE_PREFIX = "sqlite:///"

# Engine global - initialise lors du premier appel a get_engine()
_engine: Optional[Engine] = None


def build_engine(database_url: str) -> Engine:
    """
    Cree un engine pour l'URL donnee.

    Pour SQLite, le ~ est etendu et le dossier parent cree. Une base en
    memoire partage une connexion unique (StaticPool) pour rester visible
    depuis tous les threads.

    Args:
        database_url: URL SQLAlchemy de la base

    Returns:
        Engine SQLAlchemy
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=False)

    connect_args = {"check_same_thread": False}
    raw = database_url[len(_SQLITE_PREFIX):] if database_url.startswith(_SQLITE_PREFIX) else ""
    if raw in ("", ":memory:"):
        return create_engine(
            "sqlite://", echo=False, connect_args=connect_args, poolclass=StaticPool
        )

    db_path = Path(raw).expanduser()
    db_path.parent.mkdir(exist_ok=True, parents=True)
    return create_engine(f"{_SQLITE_PREFIX}{db_path}", echo=False, connect_args=connect_args)


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Retourne l'engine global, en le creant si necessaire.

    Sans URL explicite, utilise la configuration de l'application.
    """
    global _engine
    if _engine is None:
        if database_url is None:
            from src.config import Settings

            database_url = Settings().database_url
        _engine = build_engine(database_url)
    return _engine


def reset_engine() -> None:
    """Libere l'engine global (tests, changement de base)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def get_session() -> Generator[Session, None, None]:
    """
    Generateur de session SQLModel.

    Utilisation avec next() :
        session = next(get_session())

    Yields:
        Session SQLModel connectee a l'engine global
    """
    with Session(get_engine()) as session:
        yield session


def init_db(database_url: Optional[str] = None) -> Engine:
    """
    Initialise la base de donnees en creant les tables manquantes.

    Doit etre appelee une fois au demarrage (ressource du conteneur).

    Args:
        database_url: URL de la base (defaut: configuration)

    Returns:
        L'engine initialise
    """
    # Import des modeles pour enregistrer leurs metadonnees
    from src.infrastructure.persistence import models  # noqa: F401

    engine = get_engine(database_url)
    SQLModel.metadata.create_all(engine)
    logger.debug(f"Base de donnees initialisee: {engine.url}")
    return engine
