"""
Package de scan des sources de donnees.

Reexporte les deux scanners et les objets necessaires a leur construction
et a la lecture de leurs resultats.
"""

from .messages import Message, MessageLevel, MessageLog
from .metadata_seeder import MetadataSeeder
from .movie_scanner import MovieScanner
from .scan_config import ScanConfig
from .session import ScanSummary
from .tvshow_scanner import TvShowScanner

__all__ = [
    "MovieScanner",
    "TvShowScanner",
    "MetadataSeeder",
    "ScanConfig",
    "ScanSummary",
    "Message",
    "MessageLevel",
    "MessageLog",
]
