"""
Modeles SQLModel pour la base de donnees CineScan.

Ces modeles representent les tables de la base de donnees SQLite.
Ils sont distincts des entites de domaine (dataclass dans core/entities/)
selon l'architecture hexagonale.

Tables:
- library_entities: Films, series, episodes et collections. Les episodes
  referencent leur serie par parent_id.

Les champs JSON (*_json) stockent les fichiers rattaches et les champs
propres a chaque type d'entite.
"""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, Index, SQLModel


class LibraryEntityModel(SQLModel, table=True):
    """
    Modele representant une entite de la bibliotheque.

    Le type (kind) reprend la valeur de EntityKind ; details_json contient
    les champs specifiques (edition, saison/episode, illustrations de
    saison...).
    """

    __tablename__ = "library_entities"
    __table_args__ = (Index("ix_library_entities_kind_path", "kind", "path"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    kind: str = Field(index=True)
    parent_id: Optional[int] = Field(
        default=None, foreign_key="library_entities.id", index=True
    )
    title: str = Field(default="", index=True)
    original_title: str = ""
    year: int = 0
    plot: str = ""
    path: Optional[str] = None
    datasource: Optional[str] = None
    locked: bool = False
    imdb_id: str = Field(default="", index=True)
    tmdb_id: int = Field(default=0, index=True)
    tvdb_id: int = 0
    media_files_json: Optional[str] = None  # JSON: [{"path": "...", "kind": "video"}]
    details_json: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
