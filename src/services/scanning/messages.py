"""
Journal des messages utilisateur d'un scan.

Les erreurs de scan ne sont jamais levees vers l'utilisateur : elles sont
agregees ici et affichees dans le bilan final.
"""

import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from loguru import logger

from src.core.ports.feedback import IMessageSink


class MessageLevel(str, Enum):
    """Niveau d'un message utilisateur."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


# Cles des messages publies par le moteur de scan
DATASOURCE_UNAVAILABLE = "datasource.unavailable"
DATASOURCE_EMPTY = "datasource.empty"
DATASOURCE_DISC_AT_ROOT = "datasource.disc_at_root"
EPISODE_IN_ROOT = "scan.episode_in_root"
AMBIGUOUS_MATCH = "scan.ambiguous_match"
THREAD_CRASHED = "scan.thread_crashed"
NO_VIDEO = "scan.no_video"
CLEANUP_IO_FAILURE = "cleanup.io_failure"


@dataclass(frozen=True)
class Message:
    level: MessageLevel
    key: str
    subject: str = ""
    detail: str = ""


class MessageLog(IMessageSink):
    """Journal thread-safe ; chaque message est aussi trace dans les logs."""

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._lock = threading.Lock()

    def push(
        self,
        level: MessageLevel | str,
        key: str,
        subject: Optional[Path | str] = None,
        detail: str = "",
    ) -> None:
        message = Message(
            level=MessageLevel(level),
            key=key,
            subject=str(subject) if subject is not None else "",
            detail=detail,
        )
        with self._lock:
            self._messages.append(message)

        text = f"{key}: {message.subject}" + (f" ({detail})" if detail else "")
        if message.level is MessageLevel.ERROR:
            logger.error(text)
        elif message.level is MessageLevel.WARNING:
            logger.warning(text)
        else:
            logger.info(text)

    @property
    def messages(self) -> list[Message]:
        with self._lock:
            return list(self._messages)

    def by_key(self, key: str) -> list[Message]:
        return [m for m in self.messages if m.key == key]

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
