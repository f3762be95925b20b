"""
Interface port pour la lecture des fichiers compagnons (NFO, VSMETA, XML).
"""

from abc import ABC, abstractmethod
from pathlib import Path

from src.core.entities.library import EntityKind
from src.core.value_objects import SidecarParseResult


class ISidecarParser(ABC):
    """
    Lecteur de fichiers de métadonnées stockés à côté des médias.

    Une implémentation ne doit jamais lever d'exception : toute erreur de
    lecture est retournée dans SidecarParseResult.error.
    """

    @abstractmethod
    def supports(self, path: Path) -> bool:
        """Indique si le lecteur sait interpréter ce fichier."""
        ...

    @abstractmethod
    def parse(self, path: Path, kind: EntityKind) -> SidecarParseResult:
        """
        Lit un fichier compagnon.

        Args:
            path: Chemin du fichier
            kind: Type d'entité attendu (film, série, épisode, collection)

        Returns:
            Les entités partielles lues, ou un résultat en échec
        """
        ...
