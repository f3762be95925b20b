"""
Commandes CLI de mise a jour de la bibliotheque
(update-movies, update-tvshows, update-moviesets).
"""

from pathlib import Path
from typing import Annotated, Callable, Optional

import typer
from loguru import logger

from src.adapters.cli.helpers import (
    RichProgressListener,
    console,
    create_progress,
    display_summary,
    suppress_loguru,
    with_container,
)
from src.core.exceptions import RepositoryError
from src.services.scanning import ScanSummary


def update_movies(
    paths: Annotated[
        Optional[list[Path]],
        typer.Argument(help="Dossiers de films a rescanner (defaut: toutes les sources)"),
    ] = None,
) -> None:
    """
    Met a jour les films depuis les sources de donnees configurees.

    Avec des chemins, seuls les films dont le dossier racine est donne sont
    rescannes, puis nettoyes.
    """
    _update_movies(paths or [])


@with_container()
def _update_movies(container, paths: list[Path]) -> None:
    config = container.config()
    scanner = container.movie_scanner()
    if paths:
        console.print(f"[bold cyan]Mise a jour de {len(paths)} film(s)[/bold cyan]")
        _run_scan(container, scanner, "Films", lambda: scanner.update_movies(paths))
        return

    if not config.movie_datasources:
        console.print("[yellow]Aucune source de films configuree (CINESCAN_MOVIE_DATASOURCES)[/yellow]")
        raise typer.Exit(code=1)
    console.print(
        f"[bold cyan]Scan de {len(config.movie_datasources)} source(s) de films[/bold cyan]"
    )
    _run_scan(
        container,
        scanner,
        "Films",
        lambda: scanner.update_datasources(config.movie_datasources),
    )


def update_tvshows(
    paths: Annotated[
        Optional[list[Path]],
        typer.Argument(help="Dossiers de series a rescanner (defaut: toutes les sources)"),
    ] = None,
) -> None:
    """
    Met a jour les series depuis les sources de donnees configurees.

    Avec des chemins, seules les series donnees sont rescannees ; une serie
    dont le dossier a disparu est supprimee.
    """
    _update_tvshows(paths or [])


@with_container()
def _update_tvshows(container, paths: list[Path]) -> None:
    config = container.config()
    scanner = container.tvshow_scanner()
    if paths:
        console.print(f"[bold cyan]Mise a jour de {len(paths)} serie(s)[/bold cyan]")
        _run_scan(container, scanner, "Series", lambda: scanner.update_tvshows(paths))
        return

    if not config.tvshow_datasources:
        console.print("[yellow]Aucune source de series configuree (CINESCAN_TVSHOW_DATASOURCES)[/yellow]")
        raise typer.Exit(code=1)
    console.print(
        f"[bold cyan]Scan de {len(config.tvshow_datasources)} source(s) de series[/bold cyan]"
    )
    _run_scan(
        container,
        scanner,
        "Series",
        lambda: scanner.update_datasources(config.tvshow_datasources),
    )


def update_moviesets() -> None:
    """Lit les NFO du dossier de collections et met a jour les collections."""
    _update_moviesets()


@with_container()
def _update_moviesets(container) -> None:
    config = container.config()
    if config.movieset_data_folder is None:
        console.print("[yellow]Aucun dossier de collections configure (CINESCAN_MOVIESET_DATA_FOLDER)[/yellow]")
        raise typer.Exit(code=1)
    scanner = container.movie_scanner()
    _run_scan(container, scanner, "Collections", scanner.update_movie_sets)


def _run_scan(container, scanner, label: str, scan: Callable[[], ScanSummary]) -> None:
    """
    Execute un scan avec barre de progression puis affiche le bilan.

    Seule une erreur de la base de donnees interrompt la commande.
    """
    message_log = container.message_log()
    message_log.clear()
    try:
        with suppress_loguru(), create_progress() as progress:
            scanner.set_progress_listener(RichProgressListener(progress, label))
            summary = scan()
    except KeyboardInterrupt:
        scanner.cancel()
        console.print("[yellow]Scan annule[/yellow]")
        raise typer.Exit(code=130)
    except RepositoryError as e:
        logger.error(f"Echec de la base de donnees: {e}")
        console.print(f"[red]Erreur de base de donnees:[/red] {e}")
        raise typer.Exit(code=1)

    display_summary(label, summary, message_log.messages)
