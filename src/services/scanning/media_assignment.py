"""
Rattachement des fichiers observes a une entite.

Regles communes :
- un fichier deja rattache (meme chemin) n'est jamais duplique ;
- une illustration "X-poster.jpg" dont X n'est pas le nom de la video
  principale est retrogradee en GRAPHIC ;
- une affiche manquante est recherchee parmi les images non resolues
  portant le nom de la video ou le titre.
"""

from pathlib import Path
from typing import Iterable, Optional

from loguru import logger

from src.core.entities.library import LibraryEntity
from src.core.value_objects import MediaFile, MediaFileKind
from src.services.scanning.classifier import PathClassifier, demote_orphan_artwork

# Un film ne garde ni les images non resolues ni les illustrations de saison
MOVIE_REJECTED_KINDS = frozenset({
    MediaFileKind.GRAPHIC,
    MediaFileKind.UNKNOWN,
    MediaFileKind.SEASON_POSTER,
    MediaFileKind.SEASON_BANNER,
    MediaFileKind.SEASON_THUMB,
})

# Roles completes par la seconde passe tolerante, dans cet ordre
LENIENT_ARTWORK_KINDS = (
    MediaFileKind.FANART,
    MediaFileKind.POSTER,
    MediaFileKind.BANNER,
    MediaFileKind.CLEARLOGO,
    MediaFileKind.LOGO,
    MediaFileKind.CLEARART,
    MediaFileKind.KEYART,
    MediaFileKind.DISC,
)


def attach_files(
    entity: LibraryEntity,
    files: Iterable[MediaFile],
    main_video: Optional[MediaFile] = None,
    rejected: frozenset[MediaFileKind] = frozenset({MediaFileKind.UNKNOWN}),
) -> list[MediaFile]:
    """
    Ajoute a l'entite les fichiers qu'elle ne possede pas encore.

    Args:
        entity: Entite cible
        files: Fichiers observes pour ce titre
        main_video: Video de reference pour valider les illustrations
            (par defaut, la video principale de l'entite)
        rejected: Types jamais rattaches

    Returns:
        Les fichiers effectivement ajoutes
    """
    files = list(files)
    if main_video is None:
        main_video = entity.main_video or next(
            (mf for mf in files if mf.kind is MediaFileKind.VIDEO), None
        )

    added = []
    for media_file in files:
        if entity.has_media_file(media_file):
            continue
        if demote_orphan_artwork(main_video, media_file):
            logger.debug(f"| Illustration sans video associee: {media_file.filename}")
        if media_file.kind in rejected:
            logger.trace(f"| Fichier non rattache ({media_file.kind.name}): {media_file.path}")
            continue
        entity.add_media_file(media_file)
        added.append(media_file)
    return added


def attach_movie_files(entity: LibraryEntity, files: Iterable[MediaFile]) -> list[MediaFile]:
    """
    Rattache les fichiers d'un film, videos en tete.

    Les images non resolues retrogradees restent rattachees : la seconde
    passe (fill_missing_artwork) peut encore leur attribuer un role.
    """
    files = sorted(files, key=lambda mf: mf.kind is not MediaFileKind.VIDEO)
    main_video = entity.main_video or next(
        (mf for mf in files if mf.kind is MediaFileKind.VIDEO), None
    )

    added = []
    for media_file in files:
        if entity.has_media_file(media_file) or media_file.kind in MOVIE_REJECTED_KINDS:
            continue
        if media_file.kind in (MediaFileKind.FANART, MediaFileKind.THUMB) and (
            media_file.folder.name.lower().startswith(("extrafanart", "extrathumb"))
        ):
            logger.warning(f"| Illustration inattendue dans {media_file.folder.name}: {media_file.path}")
            continue
        demote_orphan_artwork(main_video, media_file)
        entity.add_media_file(media_file)
        added.append(media_file)
    return added


def promote_poster(
    entity: LibraryEntity, files: Iterable[MediaFile], *names: str
) -> Optional[MediaFile]:
    """
    Designe une affiche parmi les images non resolues.

    Une image GRAPHIC dont le nom (sans extension) est celui de la video,
    celui de la video sans marqueur de decoupage, ou l'un des noms fournis
    (titre...) devient l'affiche de l'entite.

    Returns:
        Le fichier promu, ou None
    """
    if entity.media_files_of(MediaFileKind.POSTER):
        return None

    candidates = {name for name in names if name}
    video = entity.main_video
    if video is not None:
        candidates.update((video.stem, video.basename_without_stacking))

    for media_file in files:
        if media_file.kind is MediaFileKind.GRAPHIC and media_file.stem in candidates:
            logger.debug(f"| Affiche retenue: {media_file.filename}")
            media_file.kind = MediaFileKind.POSTER
            entity.add_media_file(media_file)
            return media_file
    return None


def fill_missing_artwork(entity: LibraryEntity, classifier: PathClassifier) -> list[MediaFile]:
    """
    Complete les roles d'illustration absents a partir des images GRAPHIC.

    Seconde passe tolerante : une image retrogradee ("Autre-fanart.jpg")
    reprend son role si l'entite n'a aucun fichier de ce role.

    Returns:
        Les fichiers requalifies
    """
    changed = []
    for kind in LENIENT_ARTWORK_KINDS:
        if entity.media_files_of(kind):
            continue
        for media_file in entity.media_files_of(MediaFileKind.GRAPHIC):
            if classifier.image_kind(media_file.path) is kind:
                media_file.kind = kind
                changed.append(media_file)
                break
    return changed


def remove_vanished_files(entity: LibraryEntity) -> list[MediaFile]:
    """
    Retire de l'entite les fichiers qui n'existent plus sur le disque.

    Returns:
        Les fichiers retires
    """
    removed = []
    for media_file in list(entity.media_files):
        if _exists(media_file.path):
            continue
        logger.debug(f"| Fichier disparu: {media_file.path}")
        entity.remove_media_file(media_file)
        removed.append(media_file)
    return removed


def _exists(path: Path) -> bool:
    try:
        # Un lien symbolique casse compte comme present
        return path.exists() or path.is_symlink()
    except OSError:
        return False
