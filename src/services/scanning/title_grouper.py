"""
Partition des dossiers multi-titres.

Un dossier contenant plusieurs films (ou la racine d'une source de donnees)
est decoupe en groupes de fichiers, un par video principale, en comparant
les noms sans marqueur de decoupage.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable

from loguru import logger

from src.core.value_objects import MediaFile, MediaFileKind
from src.services.scanning.classifier import tag_double_extensions


@dataclass
class TitleCluster:
    """
    Fichiers d'un titre dans un dossier multi-titres.

    Attributs:
        video: Video ayant declenche le groupe
        basename: Nom de la video sans extension ni marqueur de decoupage
        files: Fichiers du titre, video comprise
    """

    video: MediaFile
    basename: str
    files: list[MediaFile] = field(default_factory=list)

    @property
    def videos(self) -> list[MediaFile]:
        return [mf for mf in self.files if mf.kind is MediaFileKind.VIDEO]


def same_title(basename: str, media_file: MediaFile) -> bool:
    """
    Vrai si le fichier porte le nom du titre.

    "Film.mkv", "Film-poster.jpg" et "Film.fr.srt" appartiennent au titre
    "Film" ; "Film2.mkv" non.
    """
    stem = media_file.stem
    if stem == basename:
        return True
    return re.fullmatch(re.escape(basename) + r"[\s.,_-].*", stem) is not None


def _owner(media_file: MediaFile, basenames: Iterable[str]) -> str:
    """Titre le plus long auquel appartient un fichier compagnon ("" si aucun)."""
    return max((b for b in basenames if same_title(b, media_file)), key=len, default="")


class TitleGrouper:
    """Decoupe les fichiers d'un dossier multi-titres en groupes par titre."""

    def partition(self, files: Iterable[MediaFile]) -> list[TitleCluster]:
        """
        Regroupe les fichiers autour de chaque video.

        Les fichiers sont examines du nom le plus long au plus court : un
        titre dont le nom prolonge celui d'un autre ("Film 2" et "Film")
        est resolu en premier. Un fichier rattache a un groupe est retire
        de l'ensemble de travail et ne peut plus etre reclame.

        Args:
            files: Fichiers du dossier (deja classes)

        Returns:
            Un groupe par video non encore rattachee
        """
        remaining = sorted(files, key=lambda mf: len(mf.filename), reverse=True)
        videos = [mf for mf in remaining if mf.kind is MediaFileKind.VIDEO]
        basenames = {mf.basename_without_stacking for mf in videos}
        clusters: list[TitleCluster] = []

        for video in videos:
            if video not in remaining:
                continue
            basename = video.basename_without_stacking
            logger.trace(f"Groupe multi-titres: {basename}")

            members = []
            for candidate in remaining:
                if candidate.kind is MediaFileKind.VIDEO:
                    # "Alien 2.mkv" n'est pas une partie de "Alien.CD1.mkv"
                    if candidate.basename_without_stacking != basename:
                        continue
                elif _owner(candidate, basenames) != basename:
                    continue
                # Image de meme nom sans suffixe de role : c'est l'affiche
                if candidate.kind is MediaFileKind.GRAPHIC:
                    candidate.kind = MediaFileKind.POSTER
                members.append(candidate)
            if video not in members:
                members.insert(0, video)

            tag_double_extensions(members + [mf for mf in videos if mf not in members])
            remaining = [mf for mf in remaining if mf not in members]
            clusters.append(TitleCluster(video=video, basename=basename, files=members))

        return clusters
