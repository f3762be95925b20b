"""
Utilitaires partages pour les commandes CLI de CineScan.

Ce module fournit :
- console : instance Rich Console partagee
- suppress_loguru : context manager pour desactiver/reactiver les logs loguru
- with_container : decorateur injectant un container initialise
- RichProgressListener : progression d'un scan affichee par Rich
- display_summary : bilan final d'un scan (compteurs et messages)
"""

from contextlib import contextmanager
from functools import wraps
from typing import Optional

from loguru import logger as loguru_logger
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
)
from rich.table import Table

from src.container import Container
from src.core.ports.feedback import IProgressListener
from src.services.scanning import Message, MessageLevel, ScanSummary

console = Console()

_LEVEL_STYLES = {
    MessageLevel.INFO: "cyan",
    MessageLevel.WARNING: "yellow",
    MessageLevel.ERROR: "red",
}


@contextmanager
def suppress_loguru():
    """
    Context manager pour desactiver les logs loguru pendant l'affichage Rich.

    Usage:
        with suppress_loguru():
            console.print(...)
    """
    loguru_logger.disable("src")
    try:
        yield
    finally:
        loguru_logger.enable("src")


def with_container(requires_db: bool = True):
    """
    Decorateur qui injecte un container initialise en premier argument.

    Args:
        requires_db: Si True (defaut), initialise la base de donnees.

    Usage:
        @with_container()
        def my_command(container, ...):
            config = container.config()
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            container = Container()
            if requires_db:
                container.database.init()
            try:
                return func(container, *args, **kwargs)
            finally:
                if requires_db:
                    container.shutdown_resources()
        return wrapper
    return decorator


class RichProgressListener(IProgressListener):
    """
    Affiche la progression d'un scan dans une barre Rich.

    Les notifications arrivent depuis les threads du scan ; Progress.update
    est thread-safe.

    Args:
        progress: Barre de progression Rich deja demarree
        description: Libelle de la tache
    """

    def __init__(self, progress: Progress, description: str) -> None:
        self._progress = progress
        self._description = description
        self._task: TaskID = progress.add_task(f"[cyan]{description}", total=None)

    def on_item(self, description: str) -> None:
        self._progress.update(
            self._task, description=f"[cyan]{self._description}[/cyan] {description}"
        )

    def on_progress(self, done: int, total: int) -> None:
        self._progress.update(self._task, completed=done, total=max(total, 1))


def create_progress() -> Progress:
    """Barre de progression standard des commandes de scan."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
    )


def display_summary(
    title: str, summary: ScanSummary, messages: Optional[list[Message]] = None
) -> None:
    """
    Affiche le bilan d'un scan.

    Args:
        title: Titre du tableau
        summary: Bilan produit par le scanner
        messages: Messages utilisateur publies pendant le scan
    """
    table = Table(title=title, show_header=False)
    table.add_column("Compteur", style="bold")
    table.add_column("Valeur", justify="right")
    table.add_row("Fichiers trouves", str(summary.files_found))
    table.add_row("Entites trouvees", str(summary.entities_found))
    table.add_row("Dossiers (pre / post)", f"{summary.pre_dir} / {summary.post_dir}")
    table.add_row("Fichiers visites", str(summary.visited_file))
    table.add_row("[green]Ajouts[/green]", str(summary.inserted))
    table.add_row("[cyan]Mises a jour[/cyan]", str(summary.updated))
    table.add_row("[yellow]Suppressions[/yellow]", str(summary.removed))
    if summary.failed_tasks:
        table.add_row("[red]Taches en echec[/red]", str(summary.failed_tasks))
    console.print(table)

    if summary.cancelled:
        console.print("[yellow]Scan interrompu avant la fin[/yellow]")

    if messages:
        message_table = Table(title="Messages")
        message_table.add_column("Niveau")
        message_table.add_column("Message")
        message_table.add_column("Element", overflow="fold")
        for message in messages:
            style = _LEVEL_STYLES[message.level]
            detail = f" ({message.detail})" if message.detail else ""
            message_table.add_row(
                f"[{style}]{message.level.value}[/{style}]",
                message.key + detail,
                message.subject,
            )
        console.print(message_table)
