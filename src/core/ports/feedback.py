"""
Interfaces ports pour le retour utilisateur pendant un scan.

Le moteur de scan ne connait ni la console ni l'interface graphique : il
publie sa progression et ses diagnostics a travers ces deux contrats.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional


class IProgressListener(ABC):
    """Recepteur de progression d'un scan."""

    @abstractmethod
    def on_item(self, description: str) -> None:
        """Signale l'element en cours de traitement (dossier, entite)."""
        ...

    @abstractmethod
    def on_progress(self, done: int, total: int) -> None:
        """
        Signale l'avancement global.

        Args:
            done: Nombre d'elements traites
            total: Nombre total d'elements connus a cet instant
        """
        ...


class NullProgressListener(IProgressListener):
    """Recepteur qui ignore toute progression."""

    def on_item(self, description: str) -> None:
        pass

    def on_progress(self, done: int, total: int) -> None:
        pass


class IMessageSink(ABC):
    """Journal des messages destines a l'utilisateur."""

    @abstractmethod
    def push(
        self,
        level: str,
        key: str,
        subject: Optional[Path | str] = None,
        detail: str = "",
    ) -> None:
        """
        Publie un message.

        Args:
            level: Niveau ("info", "warning", "error")
            key: Cle du message (ex: "datasource.unavailable")
            subject: Chemin ou element concerne
            detail: Complement libre
        """
        ...
