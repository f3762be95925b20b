"""
Entites persistantes de la bibliotheque.

Une LibraryEntity est une union etiquetee : les champs communs (titre,
chemin racine, fichiers, verrouillage) sont portes par l'entite, les champs
propres a chaque type (film, serie, episode, collection) par un objet
"details" associe a l'etiquette EntityKind.
"""

import threading
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from src.core.value_objects import (
    UNKNOWN_NUMBER,
    MediaFile,
    MediaFileKind,
    MediaSource,
    MovieEdition,
    SidecarMetadata,
)


class EntityKind(Enum):
    """Type d'entite de la bibliotheque."""

    MOVIE = "movie"
    TV_SHOW = "tv_show"
    EPISODE = "episode"
    MOVIE_SET = "movie_set"


@dataclass
class MovieDetails:
    """Champs propres a un film."""

    edition: MovieEdition = MovieEdition.NONE
    edition_label: Optional[str] = None
    media_source: MediaSource = MediaSource.UNKNOWN
    video_in_3d: bool = False
    multi_movie_dir: bool = False
    offline: bool = False
    disc: bool = False
    original_filename: str = ""
    movie_set: str = ""


@dataclass
class ShowDetails:
    """
    Champs propres a une serie.

    Attributs:
        episodes: Episodes de la serie (entites de type EPISODE)
        season_artwork: Illustrations de saison, par numero puis par type
    """

    episodes: list["LibraryEntity"] = field(default_factory=list)
    season_artwork: dict[int, dict[str, Path]] = field(default_factory=dict)


@dataclass
class EpisodeDetails:
    """Champs propres a un episode."""

    season: int = UNKNOWN_NUMBER
    episode: int = UNKNOWN_NUMBER
    first_aired: Optional[date] = None
    multi_episode: bool = False
    disc: bool = False
    media_source: MediaSource = MediaSource.UNKNOWN
    original_filename: str = ""


@dataclass
class MovieSetDetails:
    """Champs propres a une collection de films."""

    nfo_file: Optional[Path] = None


Details = Union[MovieDetails, ShowDetails, EpisodeDetails, MovieSetDetails]

_DETAILS_BY_KIND = {
    EntityKind.MOVIE: MovieDetails,
    EntityKind.TV_SHOW: ShowDetails,
    EntityKind.EPISODE: EpisodeDetails,
    EntityKind.MOVIE_SET: MovieSetDetails,
}


@dataclass(eq=False)
class LibraryEntity:
    """
    Enregistrement de la bibliotheque (film, serie, episode ou collection).

    L'identite est celle de l'objet : deux entites de meme titre restent
    distinctes. Toute modification automatique passe par le verrou propre
    a l'entite (voir ReconciliationStore) ; une entite verrouillee
    (locked) n'est jamais modifiee par le scan.

    Attributs:
        kind: Type d'entite
        title: Titre
        year: Annee de sortie (0 si inconnue)
        path: Dossier racine de l'entite
        datasource: Source de donnees contenant l'entite
        media_files: Fichiers rattaches
        locked: Exclut l'entite de toute modification automatique
        newly_added: Cree pendant le scan en cours
        details: Champs specifiques au type
    """

    kind: EntityKind
    id: Optional[int] = None
    title: str = ""
    original_title: str = ""
    year: int = 0
    plot: str = ""
    path: Optional[Path] = None
    datasource: Optional[Path] = None
    media_files: list[MediaFile] = field(default_factory=list)
    locked: bool = False
    newly_added: bool = False
    imdb_id: str = ""
    tmdb_id: int = 0
    tvdb_id: int = 0
    details: Details = None  # type: ignore[assignment]
    lock: threading.RLock = field(
        default_factory=threading.RLock, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if self.details is None:
            self.details = _DETAILS_BY_KIND[self.kind]()

    # Fabriques

    @classmethod
    def new_movie(cls, **kwargs) -> "LibraryEntity":
        return cls(kind=EntityKind.MOVIE, **kwargs)

    @classmethod
    def new_tv_show(cls, **kwargs) -> "LibraryEntity":
        return cls(kind=EntityKind.TV_SHOW, **kwargs)

    @classmethod
    def new_episode(cls, season: int, episode: int, **kwargs) -> "LibraryEntity":
        entity = cls(kind=EntityKind.EPISODE, **kwargs)
        entity.details.season = season
        entity.details.episode = episode
        return entity

    @classmethod
    def new_movie_set(cls, **kwargs) -> "LibraryEntity":
        return cls(kind=EntityKind.MOVIE_SET, **kwargs)

    # Fichiers

    def has_media_file(self, media_file: MediaFile) -> bool:
        return media_file in self.media_files

    def add_media_file(self, media_file: MediaFile) -> bool:
        """
        Ajoute un fichier s'il n'est pas deja rattache (identite par chemin).

        Returns:
            True si le fichier a ete ajoute
        """
        if media_file in self.media_files:
            return False
        self.media_files.append(media_file)
        return True

    def add_media_files(self, media_files: Iterable[MediaFile]) -> None:
        for media_file in media_files:
            self.add_media_file(media_file)

    def remove_media_file(self, media_file: MediaFile) -> None:
        if media_file in self.media_files:
            self.media_files.remove(media_file)

    def media_files_of(self, *kinds: MediaFileKind) -> list[MediaFile]:
        if not kinds:
            return list(self.media_files)
        return [mf for mf in self.media_files if mf.kind in kinds]

    @property
    def main_video(self) -> Optional[MediaFile]:
        """
        Fichier video principal.

        Le premier identifiant de disque s'il y en a un, sinon la video au nom
        le plus long ; a egalite, la premiere rattachee.
        """
        videos = self.media_files_of(MediaFileKind.VIDEO)
        if not videos:
            return None
        disc_files = [mf for mf in videos if mf.is_disc_file]
        if disc_files:
            return disc_files[0]
        return max(videos, key=lambda mf: len(mf.filename))

    @property
    def has_video(self) -> bool:
        return any(mf.kind is MediaFileKind.VIDEO for mf in self.media_files)

    # Metadonnees

    def apply_sidecar(self, metadata: SidecarMetadata) -> None:
        """Reporte les champs renseignes d'un fichier compagnon sur l'entite."""
        if metadata.title.strip():
            self.title = metadata.title.strip()
        if metadata.original_title:
            self.original_title = metadata.original_title
        if metadata.year > 0:
            self.year = metadata.year
        if metadata.plot:
            self.plot = metadata.plot
        if metadata.imdb_id:
            self.imdb_id = metadata.imdb_id
        if metadata.tmdb_id > 0:
            self.tmdb_id = metadata.tmdb_id
        if metadata.tvdb_id > 0:
            self.tvdb_id = metadata.tvdb_id
        if metadata.locked:
            self.locked = True
        if isinstance(self.details, EpisodeDetails):
            if metadata.season > UNKNOWN_NUMBER:
                self.details.season = metadata.season
            if metadata.episode > UNKNOWN_NUMBER:
                self.details.episode = metadata.episode
            if metadata.first_aired:
                self.details.first_aired = metadata.first_aired
        elif isinstance(self.details, MovieDetails):
            if metadata.movie_set:
                self.details.movie_set = metadata.movie_set
            if metadata.edition and self.details.edition is MovieEdition.NONE:
                self.details.edition = MovieEdition.parse(" " + metadata.edition)

    # Series

    @property
    def episodes(self) -> list["LibraryEntity"]:
        if isinstance(self.details, ShowDetails):
            return self.details.episodes
        return []

    def episodes_for_file(self, media_file: MediaFile) -> list["LibraryEntity"]:
        """Episodes de la serie rattaches a un fichier donne."""
        return [ep for ep in self.episodes if ep.has_media_file(media_file)]

    def episodes_at(self, season: int, episode: int) -> list["LibraryEntity"]:
        return [
            ep
            for ep in self.episodes
            if ep.details.season == season and ep.details.episode == episode
        ]

    def __repr__(self) -> str:
        return (
            f"LibraryEntity(kind={self.kind.value}, title={self.title!r}, "
            f"year={self.year}, path={self.path})"
        )
