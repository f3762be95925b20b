"""
Interface port pour le cache des images derivees (vignettes).
"""

from abc import ABC, abstractmethod
from pathlib import Path


class IImageCache(ABC):
    """Cache des vignettes calculees a partir des illustrations."""

    @abstractmethod
    def invalidate(self, path: Path) -> bool:
        """
        Supprime l'entree de cache associee a une illustration.

        Returns:
            True si une entree a ete supprimee
        """
        ...
