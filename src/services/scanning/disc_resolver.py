"""
Resolution de la racine logique des structures de disques.

Un film sur disque se presente sous la forme Film/BDMV/STREAM/00000.m2ts
ou Film/VIDEO_TS/VTS_01_1.VOB : l'entite doit etre rattachee a "Film",
jamais a un sous-dossier de la structure.
"""

from pathlib import Path
from typing import Optional

from src.utils.constants import DISC_FOLDER_REGEX


def is_disc_folder_name(name: str) -> bool:
    """Vrai pour BDMV, VIDEO_TS, HVDVD_TS (insensible a la casse)."""
    return DISC_FOLDER_REGEX.fullmatch(name) is not None


def _has_disc_component(relative: Path) -> bool:
    return any(is_disc_folder_name(part) for part in relative.parts)


class DiscFolderResolver:
    """Remonte d'un fichier ou dossier de disque jusqu'a sa racine logique."""

    def resolve(self, path: Path, datasource: Path, is_file: Optional[bool] = None) -> Path:
        """
        Calcule la racine logique d'un chemin de disque.

        Remonte tant que le chemin relatif a la source de donnees contient un
        composant de structure de disque. Ne remonte jamais au-dessus de la
        source de donnees.

        Args:
            path: Fichier ou dossier de disque
            datasource: Racine de la source de donnees
            is_file: Indique si path est un fichier (deduit du disque si None)

        Returns:
            Le dossier racine du disque (datasource si la structure est
            directement a la racine)
        """
        if is_file is None:
            is_file = path.is_file()
        current = path.parent if is_file else path

        while current != datasource and current.is_relative_to(datasource):
            relative = current.relative_to(datasource)
            if not _has_disc_component(relative):
                break
            current = current.parent

        if not current.is_relative_to(datasource):
            return datasource
        return current
