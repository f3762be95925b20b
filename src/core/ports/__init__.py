"""
Ports (interfaces abstraites) définissant les contrats pour les adaptateurs.

Les ports sont les frontières de l'architecture hexagonale. Ils définissent
ce dont le domaine a besoin du monde extérieur sans spécifier
comment ces besoins sont satisfaits.

- ILibraryRepository : Index persistant de la bibliothèque
- ISidecarParser : Lecture des fichiers NFO / VSMETA / XML
- IProgressListener / IMessageSink : Retour utilisateur pendant un scan
- IImageCache : Cache des vignettes dérivées des illustrations
"""

from src.core.ports.feedback import IMessageSink, IProgressListener, NullProgressListener
from src.core.ports.image_cache import IImageCache
from src.core.ports.repositories import ILibraryRepository
from src.core.ports.sidecar import ISidecarParser

__all__ = [
    "ILibraryRepository",
    "ISidecarParser",
    "IProgressListener",
    "NullProgressListener",
    "IMessageSink",
    "IImageCache",
]
