"""
Point d'entrée CLI de CineScan.

Initialise le container DI, configure le logging et fournit les commandes CLI.
"""

from typing import Annotated

import typer
from loguru import logger

from .adapters.cli.commands import update_movies, update_moviesets, update_tvshows
from .config import Settings
from .container import Container
from .logging_config import configure_logging

__version__ = "0.1.0"

app = typer.Typer(
    name="cinescan",
    help="Scan des sources de donnees d'une videotheque",
)
container = Container()

# Etat global pour les options de verbosite
state = {"verbose": 0, "quiet": False}

_VERBOSE_LEVELS = {1: "INFO", 2: "DEBUG"}


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Augmenter la verbosite (-v, -vv, -vvv)"
        ),
    ] = 0,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Mode silencieux (erreurs uniquement)"),
    ] = False,
) -> None:
    """CineScan - Scan de videotheque personnelle."""
    settings = get_config()
    if quiet:
        state["quiet"] = True
        level = "ERROR"
    else:
        state["verbose"] = verbose
        level = _VERBOSE_LEVELS.get(verbose, "TRACE" if verbose > 2 else settings.log_level)
    configure_logging(level, settings)


app.command(name="update-movies")(update_movies)
app.command(name="update-tvshows")(update_tvshows)
app.command(name="update-moviesets")(update_moviesets)


def get_config() -> Settings:
    """Récupère les paramètres de l'application depuis le container DI."""
    return container.config()


@app.command()
def info() -> None:
    """Affiche la configuration actuelle."""
    config = get_config()
    logger.info("Configuration CineScan")

    def _paths(paths) -> str:
        return ", ".join(str(p) for p in paths) if paths else "(aucune)"

    typer.echo(f"Sources films : {_paths(config.movie_datasources)}")
    typer.echo(f"Sources séries : {_paths(config.tvshow_datasources)}")
    typer.echo(f"Collections : {config.movieset_data_folder or '(aucun dossier)'}")
    typer.echo(f"Dossiers ignorés : {', '.join(config.skip_folders) or '(aucun)'}")
    typer.echo(f"Workers : {config.update_workers}")
    typer.echo(f"Base de données : {config.database_url}")
    typer.echo(f"Cache des vignettes : {config.image_cache_dir}")
    typer.echo(f"Niveau de log : {config.log_level}")


@app.command()
def version() -> None:
    """Affiche les informations de version."""
    typer.echo(f"CineScan v{__version__}")


def main() -> None:
    """Point d'entrée de l'application."""
    logger.info(f"Démarrage de CineScan v{__version__}")

    # Lance la CLI
    app()


if __name__ == "__main__":
    main()
