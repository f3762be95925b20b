"""
Entite candidate construite pendant un scan.

Une CandidateEntity regroupe les fichiers d'un titre avant sa fusion dans
la bibliotheque. Elle n'est jamais persistee telle quelle : le
ReconciliationStore la convertit en LibraryEntity (nouvelle ou existante).
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from src.core.entities.library import EntityKind
from src.core.value_objects import MediaFile, MediaFileKind, SidecarMetadata


@dataclass
class CandidateEntity:
    """
    Titre decouvert pendant un scan.

    Attributs:
        kind: Type d'entite a creer
        root: Dossier racine du titre
        datasource: Source de donnees d'origine
        files: Fichiers du titre (deja classes)
        title / year: Titre et annee deduits
        metadata: Metadonnees lues dans les fichiers compagnons, le cas echeant
        is_disc: Le titre est une structure de disque
        is_multi_title_member: Le titre partage son dossier avec d'autres titres
    """

    kind: EntityKind
    root: Path
    datasource: Path
    files: list[MediaFile] = field(default_factory=list)
    title: str = ""
    year: int = 0
    metadata: Optional[SidecarMetadata] = None
    is_disc: bool = False
    is_multi_title_member: bool = False

    @property
    def videos(self) -> list[MediaFile]:
        return [mf for mf in self.files if mf.kind is MediaFileKind.VIDEO]

    @property
    def main_video(self) -> Optional[MediaFile]:
        """
        Fichier video principal.

        Pour un disque, le premier identifiant de disque trouve ; sinon le
        fichier video au nom le plus long.
        """
        videos = self.videos
        if not videos:
            return None
        if self.is_disc:
            disc_files = [mf for mf in videos if mf.is_disc_file]
            if disc_files:
                return disc_files[0]
        return max(videos, key=lambda mf: len(mf.filename))
