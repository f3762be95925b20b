"""
Interfaces ports pour les repositories.

Interfaces abstraites (ports) définissant les contrats pour la persistance des données.
Les implémentations (adaptateurs) fourniront les mécanismes de stockage concrets
(SQLite via SQLModel, en mémoire pour les tests, etc.).
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from src.core.entities.library import EntityKind, LibraryEntity


class ILibraryRepository(ABC):
    """
    Index persistant de la bibliothèque.

    Les films, séries et collections sont des entités de premier niveau ;
    les épisodes sont persistés avec leur série et n'apparaissent qu'à
    travers elle.
    """

    @abstractmethod
    def find_by_root_path(
        self, path: Path, kind: Optional[EntityKind] = None
    ) -> Optional[LibraryEntity]:
        """
        Récupère l'entité dont le dossier racine est le chemin donné.

        Args:
            path: Dossier racine recherché
            kind: Restreint la recherche à un type d'entité

        Returns:
            La première entité trouvée, ou None
        """
        ...

    @abstractmethod
    def all_entities(self, kind: Optional[EntityKind] = None) -> Iterable[LibraryEntity]:
        """Liste les entités de premier niveau, filtrées par type si demandé."""
        ...

    @abstractmethod
    def insert(self, entity: LibraryEntity) -> LibraryEntity:
        """Ajoute une nouvelle entité et lui attribue un identifiant."""
        ...

    @abstractmethod
    def save(self, entity: LibraryEntity) -> LibraryEntity:
        """Enregistre les modifications d'une entité existante."""
        ...

    @abstractmethod
    def remove(self, entity: LibraryEntity) -> bool:
        """Supprime une entité (et ses épisodes). Retourne True si supprimée."""
        ...
