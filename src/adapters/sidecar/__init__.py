"""
Lecteurs de fichiers compagnons (NFO, XML, VSMETA).

Exports :
- NfoParser : NFO Kodi et XML d'episodes
- VsmetaParser : Fichiers binaires Synology Video Station
- default_parsers : Lecteurs utilises par defaut, dans l'ordre de priorite
"""

from src.adapters.sidecar.nfo_parser import NfoParser
from src.adapters.sidecar.vsmeta_parser import VsmetaParser


def default_parsers() -> list:
    return [NfoParser(), VsmetaParser()]


__all__ = ["NfoParser", "VsmetaParser", "default_parsers"]
