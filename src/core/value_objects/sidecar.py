"""
Metadonnees lues dans les fichiers compagnons (NFO, VSMETA, XML).

Les parseurs ne levent jamais d'exception vers le moteur de scan : un
fichier illisible produit un SidecarParseResult vide avec un message
d'erreur, et le scan se rabat sur l'analyse des noms de fichiers.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date
from typing import Optional

from src.core.value_objects.episode_match import UNKNOWN_NUMBER


@dataclass(frozen=True)
class SidecarMetadata:
    """
    Entite partielle decrite par un fichier compagnon.

    Les champs vides (chaine vide, 0, -1, None) signifient "non renseigne".
    """

    title: str = ""
    original_title: str = ""
    sort_title: str = ""
    year: int = 0
    plot: str = ""
    tagline: str = ""
    imdb_id: str = ""
    tmdb_id: int = 0
    tvdb_id: int = 0
    season: int = UNKNOWN_NUMBER
    episode: int = UNKNOWN_NUMBER
    first_aired: Optional[date] = None
    edition: str = ""
    movie_set: str = ""
    locked: bool = False

    @property
    def has_title(self) -> bool:
        return bool(self.title.strip())

    @property
    def has_ids(self) -> bool:
        return bool(self.imdb_id) and self.tmdb_id > 0

    @property
    def has_episode_numbers(self) -> bool:
        return self.season > UNKNOWN_NUMBER and self.episode > UNKNOWN_NUMBER

    def merge(self, other: Optional["SidecarMetadata"]) -> "SidecarMetadata":
        """
        Complete les champs vides avec ceux d'une autre source.

        Les valeurs deja renseignees ne sont jamais ecrasees : la premiere
        source lue (NFO) garde la priorite sur les suivantes.
        """
        if other is None:
            return self
        changes = {}
        for f in fields(self):
            current, candidate = getattr(self, f.name), getattr(other, f.name)
            if f.name in _NUMBERING_FIELDS:
                # La saison 0 (specials) est une valeur renseignee
                if current == UNKNOWN_NUMBER and candidate != UNKNOWN_NUMBER:
                    changes[f.name] = candidate
                continue
            if _is_empty(current) and not _is_empty(candidate):
                changes[f.name] = candidate
        return replace(self, **changes) if changes else self


_NUMBERING_FIELDS = ("season", "episode")


def _is_empty(value: object) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, int):
        return value <= 0
    return False


@dataclass(frozen=True)
class SidecarParseResult:
    """
    Resultat explicite d'une lecture de fichier compagnon.

    Attributs:
        records: Entites lues (plusieurs pour un NFO multi-episodes)
        raw_text: Contenu brut, utilise pour la recherche d'identifiants
        error: Message d'erreur si la lecture a echoue
    """

    records: tuple[SidecarMetadata, ...] = field(default_factory=tuple)
    raw_text: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.records)

    @property
    def first(self) -> Optional[SidecarMetadata]:
        return self.records[0] if self.records else None

    @classmethod
    def failure(cls, message: str, raw_text: str = "") -> "SidecarParseResult":
        return cls(records=(), raw_text=raw_text, error=message)
