"""
Etat partage d'une execution de scan.

Une ScanSession vit le temps d'un appel au scanner. C'est le seul etat
modifie par plusieurs taches en parallele : l'ensemble des chemins vus,
les compteurs de parcours et le drapeau d'annulation.
"""

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable


@dataclass(frozen=True)
class ScanSummary:
    """Bilan d'un scan, produit meme si des sous-scans ont echoue."""

    files_found: int
    entities_found: int
    pre_dir: int
    post_dir: int
    visited_file: int
    cancelled: bool
    inserted: int = 0
    updated: int = 0
    removed: int = 0
    failed_tasks: int = 0

    @property
    def mutations(self) -> int:
        """Nombre total d'ecritures dans la bibliotheque."""
        return self.inserted + self.updated + self.removed


class ScanSession:
    """
    Contexte d'une execution de scan, passe explicitement aux taches.

    L'ensemble des chemins vus est protege par un verrou limite aux
    operations d'insertion et de consultation.
    """

    def __init__(self) -> None:
        self._found: set[Path] = set()
        self._found_lock = threading.Lock()
        self._counter_lock = threading.Lock()
        self._cancel = threading.Event()
        self._entities: set[int] = set()
        self.pre_dir = 0
        self.post_dir = 0
        self.visited_file = 0

    # Annulation

    def cancel(self) -> None:
        self._cancel.set()

    @property
    def is_cancelled(self) -> bool:
        return self._cancel.is_set()

    # Chemins vus

    def mark_seen(self, paths: Iterable[Path]) -> None:
        paths = list(paths)
        with self._found_lock:
            self._found.update(paths)

    def was_seen(self, path: Path) -> bool:
        with self._found_lock:
            return path in self._found

    # Compteurs

    def count_pre_dir(self) -> None:
        with self._counter_lock:
            self.pre_dir += 1

    def count_post_dir(self) -> None:
        with self._counter_lock:
            self.post_dir += 1

    def count_file(self) -> None:
        with self._counter_lock:
            self.visited_file += 1

    def count_entity(self, entity: object) -> None:
        with self._counter_lock:
            self._entities.add(id(entity))

    def summary(self) -> ScanSummary:
        with self._found_lock, self._counter_lock:
            return ScanSummary(
                files_found=len(self._found),
                entities_found=len(self._entities),
                pre_dir=self.pre_dir,
                post_dir=self.post_dir,
                visited_file=self.visited_file,
                cancelled=self.is_cancelled,
            )
