"""
Pre-remplissage des entites a partir des fichiers compagnons.

Ordre de priorite : NFO (fusionnes entre eux), puis VSMETA (complete les
champs vides), puis XML generique si aucune autre source n'a fourni de
titre. Le seeder ne leve jamais d'exception : un fichier illisible est
ignore et le scan se rabat sur l'analyse des noms de fichiers.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Optional, Sequence

from loguru import logger

from src.core.entities.library import EntityKind
from src.core.ports.sidecar import ISidecarParser
from src.core.value_objects import (
    UNKNOWN_NUMBER,
    EpisodeMatch,
    MediaFile,
    MediaFileKind,
    SidecarMetadata,
    SidecarParseResult,
)
from src.services.scanning.title_parser import detect_imdb_id, detect_tmdb_id_in_nfo

TVSHOW_NFO = "tvshow.nfo"


@dataclass
class EpisodeSeed:
    """
    Metadonnees d'episode lues a cote d'une video.

    Attributs:
        records: Episodes decrits par le NFO (plusieurs pour un multi-episodes)
        vsmeta: Episode decrit par un fichier VSMETA
        xml: Premier episode decrit par un fichier XML
    """

    records: list[SidecarMetadata] = field(default_factory=list)
    vsmeta: Optional[SidecarMetadata] = None
    xml: Optional[SidecarMetadata] = None

    @property
    def all_numbers_unknown(self) -> bool:
        """Vrai si aucun episode du NFO ne porte de numero exploitable."""
        return all(
            record.season == UNKNOWN_NUMBER and record.episode == UNKNOWN_NUMBER
            for record in self.records
        )


class MetadataSeeder:
    """
    Lit les fichiers compagnons d'un groupe de fichiers.

    Args:
        parsers: Lecteurs disponibles ; le premier qui accepte un fichier le lit
    """

    def __init__(self, parsers: Sequence[ISidecarParser]) -> None:
        self._parsers = tuple(parsers)

    def _parse(self, path: Path, kind: EntityKind) -> SidecarParseResult:
        for parser in self._parsers:
            if parser.supports(path):
                try:
                    result = parser.parse(path, kind)
                except Exception as e:
                    # Un lecteur defaillant ne doit jamais interrompre le scan
                    logger.warning(f"Lecture impossible de {path.name}: {e}")
                    return SidecarParseResult.failure(str(e))
                if result.error:
                    logger.debug(f"Fichier compagnon invalide {path.name}: {result.error}")
                return result
        return SidecarParseResult.failure("format non supporte")

    def seed(self, files: Iterable[MediaFile], kind: EntityKind) -> Optional[SidecarMetadata]:
        """
        Metadonnees d'un film (ou d'une serie) a partir de ses fichiers.

        Args:
            files: Fichiers du titre
            kind: Type d'entite attendu

        Returns:
            Les metadonnees fusionnees, ou None si aucun fichier compagnon
            n'a rien apporte
        """
        files = list(files)
        metadata: Optional[SidecarMetadata] = None

        for mf in files:
            if mf.kind is not MediaFileKind.NFO:
                continue
            logger.info(f"| Lecture du NFO {mf.path}")
            result = self._parse(mf.path, kind)
            metadata = (metadata or SidecarMetadata()).merge(result.first)
            if not metadata.has_ids:
                metadata = self._ids_from_raw_text(metadata, result.raw_text, mf.path, kind)

        for mf in files:
            if mf.kind is MediaFileKind.VSMETA:
                result = self._parse(mf.path, kind)
                metadata = (metadata or SidecarMetadata()).merge(result.first)

        if metadata is None:
            for mf in files:
                if mf.extension != "xml":
                    continue
                result = self._parse(mf.path, kind)
                if result.first is not None and result.first.has_title:
                    metadata = result.first

        if metadata is not None and metadata == SidecarMetadata():
            return None
        return metadata

    def seed_show(self, show_dir: Path) -> Optional[SidecarMetadata]:
        """Metadonnees d'une serie lues dans son tvshow.nfo."""
        nfo = show_dir / TVSHOW_NFO
        if not nfo.exists():
            return None
        result = self._parse(nfo, EntityKind.TV_SHOW)
        metadata = result.first or SidecarMetadata()
        if not metadata.has_ids:
            metadata = self._ids_from_raw_text(metadata, result.raw_text, nfo, EntityKind.TV_SHOW)
        return None if metadata == SidecarMetadata() else metadata

    def seed_episodes(self, files: Iterable[MediaFile]) -> EpisodeSeed:
        """
        Metadonnees d'episode : NFO, VSMETA et XML lus separement.

        Le NFO fait autorite ; le VSMETA et le XML completent.
        """
        seed = EpisodeSeed()
        for mf in files:
            if mf.kind is MediaFileKind.VSMETA and seed.vsmeta is None:
                seed.vsmeta = self._parse(mf.path, EntityKind.EPISODE).first
            elif mf.extension == "xml" and seed.xml is None:
                seed.xml = self._parse(mf.path, EntityKind.EPISODE).first
            elif mf.kind is MediaFileKind.NFO and not seed.records:
                result = self._parse(mf.path, EntityKind.EPISODE)
                seed.records = list(result.records)
        return seed

    def _ids_from_raw_text(
        self, metadata: SidecarMetadata, raw_text: str, path: Path, kind: EntityKind
    ) -> SidecarMetadata:
        # NFO non structure : on cherche au moins les identifiants dans le texte
        if not raw_text:
            try:
                raw_text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.warning(f"| NFO illisible {path}: {e}")
                return metadata

        changes = {}
        imdb_id = detect_imdb_id(raw_text)
        if not metadata.imdb_id and imdb_id:
            logger.debug(f"| Identifiant IMDB trouve: {imdb_id}")
            changes["imdb_id"] = imdb_id
        tmdb_id = detect_tmdb_id_in_nfo(raw_text, tv=kind is EntityKind.TV_SHOW)
        if metadata.tmdb_id == 0 and tmdb_id:
            logger.debug(f"| Identifiant TMDB trouve: {tmdb_id}")
            changes["tmdb_id"] = tmdb_id
        return replace(metadata, **changes) if changes else metadata


def resolve_episode_records(seed: EpisodeSeed, match: EpisodeMatch) -> list[SidecarMetadata]:
    """
    Episodes a creer a partir du NFO et de la numerotation du nom de fichier.

    Les numeros declares par le NFO font autorite. Si tous valent "inconnu",
    la numerotation deduite du nom de fichier est reportee sur les episodes
    du NFO (titre et resume du NFO conserves). Avec plus de numeros detectes
    que d'episodes decrits, les episodes manquants sont crees sans titre.

    Returns:
        Les episodes du NFO, completes si necessaire ; vide sans NFO exploitable
    """
    if not seed.records:
        return []
    if not seed.all_numbers_unknown or not match.episodes:
        return list(seed.records)

    records = []
    for index, number in enumerate(match.episodes):
        base = seed.records[index] if index < len(seed.records) else SidecarMetadata()
        records.append(replace(base, season=match.season, episode=number))
    return records
