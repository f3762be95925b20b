"""
Cache disque des vignettes derivees des illustrations.

Chaque illustration est associee a un fichier du cache dont le nom est
le hash XXH3-64 de son chemin absolu. Le scan ne cree jamais de vignette :
il se contente d'invalider celles des illustrations retirees.
"""

from pathlib import Path

import xxhash
from loguru import logger

from src.core.ports.image_cache import IImageCache


def cache_key(path: Path) -> str:
    """
    Cle de cache d'une illustration.

    Returns:
        Hash hexadecimal de 16 caracteres (xxh3_64) du chemin absolu
    """
    return xxhash.xxh3_64(str(path.absolute()).encode("utf-8")).hexdigest()


class ImageCache(IImageCache):
    """
    Cache des vignettes dans un dossier unique.

    Args:
        cache_dir: Dossier du cache (cree a la premiere ecriture)
    """

    def __init__(self, cache_dir: Path) -> None:
        self._cache_dir = cache_dir

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    def cached_file(self, path: Path, extension: str = "jpg") -> Path:
        """Chemin de la vignette d'une illustration (qu'elle existe ou non)."""
        return self._cache_dir / f"{cache_key(path)}.{extension}"

    def store(self, path: Path, data: bytes, extension: str = "jpg") -> Path:
        """Ecrit la vignette d'une illustration."""
        target = self.cached_file(path, extension)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return target

    def invalidate(self, path: Path) -> bool:
        """
        Supprime les vignettes d'une illustration, quel que soit leur format.

        Raises:
            OSError: Si une vignette existe mais ne peut pas etre supprimee
        """
        if not self._cache_dir.is_dir():
            return False
        removed = False
        for cached in self._cache_dir.glob(f"{cache_key(path)}.*"):
            cached.unlink()
            removed = True
            logger.debug(f"Vignette invalidee: {cached.name} ({path.name})")
        return removed
