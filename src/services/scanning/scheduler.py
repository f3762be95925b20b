"""
Pool de workers borne pour les taches de scan.

Chaque tache traite un sous-arbre disjoint. Une exception dans une tache
est interceptee a sa frontiere : elle est tracee, signalee par un message
unique, et n'interrompt ni les taches soeurs ni le scan.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Optional

from loguru import logger

from src.core.ports.feedback import IMessageSink
from src.services.scanning.messages import THREAD_CRASHED, MessageLevel
from src.services.scanning.session import ScanSession


class ScanScheduler:
    """
    Execute des taches de scan sur un ThreadPoolExecutor.

    wait_for_completion() est la barriere entre les phases : la phase de
    nettoyage ne demarre qu'une fois toutes les taches de decouverte
    terminees.
    """

    def __init__(
        self,
        session: ScanSession,
        messages: IMessageSink,
        workers: int = 3,
        name: str = "scan",
    ) -> None:
        self._session = session
        self._messages = messages
        self._workers = max(1, workers)
        self._name = name
        self._executor: Optional[ThreadPoolExecutor] = None
        self._futures: list[Future] = []
        self._lock = threading.Lock()
        self.failed = 0

    def submit(self, task: Callable[..., None], *args, label: str = "") -> Optional[Future]:
        """
        Soumet une tache, sauf si le scan a ete annule.

        Args:
            task: Fonction a executer
            label: Element traite (chemin), repris dans le message d'erreur

        Returns:
            Le Future de la tache, ou None si le scan est annule
        """
        if self._session.is_cancelled:
            return None
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._workers, thread_name_prefix=self._name
                )
            future = self._executor.submit(self._run, task, args, label)
            self._futures.append(future)
        return future

    def _run(self, task: Callable[..., None], args: tuple, label: str) -> None:
        if self._session.is_cancelled:
            return
        try:
            task(*args)
        except Exception as e:
            with self._lock:
                self.failed += 1
            logger.exception(f"Tache de scan interrompue ({label or task.__name__}): {e}")
            self._messages.push(MessageLevel.ERROR, THREAD_CRASHED, label or None, str(e))

    def wait_for_completion(self) -> None:
        """Attend la fin de toutes les taches soumises puis libere le pool."""
        while True:
            with self._lock:
                pending = [f for f in self._futures if not f.done()]
                if not pending:
                    self._futures.clear()
                    executor, self._executor = self._executor, None
                    break
            wait(pending)

        if executor is not None:
            executor.shutdown(wait=True)

    def cancel(self) -> None:
        """Annulation cooperative : les taches en attente ne demarrent pas."""
        self._session.cancel()
        with self._lock:
            for future in self._futures:
                future.cancel()
