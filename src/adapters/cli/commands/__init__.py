"""Sous-package CLI commands - re-exporte les commandes publiques."""

from src.adapters.cli.commands.update_commands import (
    update_movies,
    update_moviesets,
    update_tvshows,
)

__all__ = [
    "update_movies",
    "update_moviesets",
    "update_tvshows",
]
