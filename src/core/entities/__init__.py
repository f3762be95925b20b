"""
Entites metier representant les concepts centraux du domaine.

Exports :
- LibraryEntity : Enregistrement persistant (film, serie, episode, collection)
- EntityKind : Etiquette du type d'entite
- MovieDetails, ShowDetails, EpisodeDetails, MovieSetDetails : Champs specifiques
- CandidateEntity : Titre decouvert pendant un scan, avant fusion
"""

from src.core.entities.library import (
    EntityKind,
    EpisodeDetails,
    LibraryEntity,
    MovieDetails,
    MovieSetDetails,
    ShowDetails,
)
from src.core.entities.candidate import CandidateEntity

__all__ = [
    "LibraryEntity",
    "EntityKind",
    "MovieDetails",
    "ShowDetails",
    "EpisodeDetails",
    "MovieSetDetails",
    "CandidateEntity",
]
