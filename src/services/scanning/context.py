"""
Contexte d'une execution de scan et socle commun des scanners.

Chaque appel a un scanner (mise a jour des sources, mise a jour ciblee)
construit un ScanContext neuf : session, index de la bibliotheque, pool
de workers. Rien n'est partage entre deux executions.
"""

import threading
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from loguru import logger

from src.core.ports.feedback import IMessageSink, IProgressListener, NullProgressListener
from src.core.ports.image_cache import IImageCache
from src.core.ports.repositories import ILibraryRepository
from src.services.scanning.classifier import PathClassifier
from src.services.scanning.metadata_seeder import MetadataSeeder
from src.services.scanning.reconciliation import ReconciliationStore
from src.services.scanning.scan_config import ScanConfig
from src.services.scanning.scheduler import ScanScheduler
from src.services.scanning.session import ScanSession, ScanSummary
from src.services.scanning.skip_policy import SkipPolicy
from src.services.scanning.tree_walker import TreeWalker


@dataclass
class ScanContext:
    """Collaborateurs d'une execution de scan."""

    config: ScanConfig
    session: ScanSession
    messages: IMessageSink
    store: ReconciliationStore
    scheduler: ScanScheduler
    classifier: PathClassifier
    skip_policy: SkipPolicy
    walker: TreeWalker
    seeder: MetadataSeeder
    progress: IProgressListener
    done: int = 0
    total: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def cancelled(self) -> bool:
        return self.session.is_cancelled

    def started(self, description: str) -> None:
        """Signale un nouvel element a traiter."""
        with self._lock:
            self.total += 1
            done, total = self.done, self.total
        self.progress.on_item(description)
        self.progress.on_progress(done, total)

    def finished(self) -> None:
        with self._lock:
            self.done += 1
            done, total = self.done, self.total
        self.progress.on_progress(done, total)


class ScannerBase:
    """
    Socle commun des scanners de films et de series.

    Args:
        repository: Index persistant de la bibliotheque
        seeder: Lecteur des fichiers compagnons
        messages: Journal des messages utilisateur
        config: Configuration du scan
        image_cache: Cache des vignettes a invalider au nettoyage
        progress: Recepteur de progression
    """

    skip_policy_factory: Callable[[ScanConfig], SkipPolicy] = staticmethod(SkipPolicy.for_movies)
    thread_name = "scan"

    def __init__(
        self,
        repository: ILibraryRepository,
        seeder: MetadataSeeder,
        messages: IMessageSink,
        config: Optional[ScanConfig] = None,
        image_cache: Optional[IImageCache] = None,
        progress: Optional[IProgressListener] = None,
    ) -> None:
        self._repository = repository
        self._seeder = seeder
        self._messages = messages
        self._config = config or ScanConfig()
        self._image_cache = image_cache
        self._progress = progress or NullProgressListener()
        self._context: Optional[ScanContext] = None

    @property
    def config(self) -> ScanConfig:
        return self._config

    def set_progress_listener(self, progress: IProgressListener) -> None:
        self._progress = progress

    def _start(self) -> ScanContext:
        session = ScanSession()
        classifier = PathClassifier(self._config)
        skip_policy = self.skip_policy_factory(self._config)
        context = ScanContext(
            config=self._config,
            session=session,
            messages=self._messages,
            store=ReconciliationStore(self._repository, session, self._image_cache, self._messages),
            scheduler=ScanScheduler(session, self._messages, self._config.workers, self.thread_name),
            classifier=classifier,
            skip_policy=skip_policy,
            walker=TreeWalker(skip_policy, classifier, session, self._config),
            seeder=self._seeder,
            progress=self._progress,
        )
        self._context = context
        return context

    def _finish(self, context: ScanContext) -> ScanSummary:
        summary = replace(
            context.session.summary(),
            inserted=context.store.inserted,
            updated=context.store.updated,
            removed=context.store.removed,
            failed_tasks=context.scheduler.failed,
        )
        self._context = None
        logger.info(
            f"Scan termine: {summary.files_found} fichiers, {summary.entities_found} entites, "
            f"{summary.inserted} ajouts, {summary.updated} mises a jour, {summary.removed} suppressions"
        )
        return summary

    def cancel(self) -> None:
        """Demande l'arret du scan en cours (cooperatif)."""
        context = self._context
        if context is not None:
            logger.info("Annulation du scan demandee")
            context.scheduler.cancel()
