"""
Module de persistance SQLite pour CineScan.

Ce module fournit l'infrastructure de stockage utilisant SQLModel (SQLAlchemy).
Il contient :

- database.py : Configuration de l'engine SQLite, session factory, initialisation
- models.py : Modele SQLModel de la table des entites de la bibliotheque
- repositories/ : Repository de la bibliotheque

Les modeles ici sont des adapters de persistance, distincts des entites de domaine
(dataclass dans core/entities/). La conversion entre les deux se fait dans les
repositories.

Usage:
    from src.infrastructure.persistence import init_db, get_session

    engine = init_db()  # Cree les tables si necessaire
    session = next(get_session())
"""

from src.infrastructure.persistence.database import (
    build_engine,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from src.infrastructure.persistence.models import LibraryEntityModel

__all__ = [
    "build_engine",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
    "LibraryEntityModel",
]
