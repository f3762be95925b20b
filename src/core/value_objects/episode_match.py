"""
Resultat de la detection saison/episode a partir d'un nom de fichier.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

UNKNOWN_NUMBER = -1


@dataclass
class EpisodeMatch:
    """
    Numerotation deduite d'un chemin de fichier d'episode.

    Attributs:
        season: Numero de saison (-1 si inconnu, l'annee pour un episode date)
        episodes: Numeros d'episodes tries (plusieurs pour un fichier multi-episodes)
        name: Nom analyse (chemin relatif nettoye)
        cleaned_name: Nom apres retrait des motifs de numerotation
        date: Date de diffusion pour les episodes dates
        stacking_marker_found: Vrai si le nom contient un marqueur CD1/part2
    """

    season: int = UNKNOWN_NUMBER
    episodes: list[int] = field(default_factory=list)
    name: str = ""
    cleaned_name: str = ""
    date: Optional[date] = None
    stacking_marker_found: bool = False

    def add_episode(self, number: int) -> None:
        if number not in self.episodes:
            self.episodes.append(number)
