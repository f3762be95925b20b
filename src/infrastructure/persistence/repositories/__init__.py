"""
Implementations SQLModel des repositories.

Le repository de la bibliotheque :
- Herite de l'interface ABC du domaine (src/core/ports/repositories.py)
- Recoit une session SQLModel via injection de dependances
- Convertit entre entites de domaine (dataclass) et modeles DB (SQLModel)
"""

from src.infrastructure.persistence.repositories.library_repository import (
    SQLModelLibraryRepository,
    with_db_retry,
)

__all__ = [
    "SQLModelLibraryRepository",
    "with_db_retry",
]
