"""
Lecteur minimal des fichiers VSMETA (Synology Video Station).

Le format est une suite de champs de type protobuf : une cle varint
(numero de champ << 3 | type), suivie d'un varint ou d'un bloc prefixe
par sa longueur. Seuls les champs textuels et numeriques utiles au scan
sont lus ; les blocs d'images et de distribution sont sautes.
"""

from datetime import date
from pathlib import Path
from typing import Iterator, Optional, Union

from src.core.entities.library import EntityKind
from src.core.ports.sidecar import ISidecarParser
from src.core.value_objects import UNKNOWN_NUMBER, SidecarMetadata, SidecarParseResult

# Champs de premier niveau
FIELD_TITLE = 2
FIELD_ORIGINAL_TITLE = 3
FIELD_TAGLINE = 4
FIELD_YEAR = 5
FIELD_RELEASE_DATE = 6
FIELD_LOCKED = 7
FIELD_PLOT = 8
FIELD_EPISODE_GROUP = 19

# Champs du bloc episode
FIELD_SEASON = 1
FIELD_EPISODE = 2

WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_BYTES = 2
WIRE_FIXED32 = 5

Value = Union[int, bytes]


class VsmetaFormatError(ValueError):
    """Fichier VSMETA tronque ou mal forme."""


class VsmetaParser(ISidecarParser):
    """Lit titre, annee, date, resume et numerotation d'un fichier .vsmeta."""

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() == ".vsmeta"

    def parse(self, path: Path, kind: EntityKind) -> SidecarParseResult:
        try:
            data = path.read_bytes()
        except OSError as e:
            return SidecarParseResult.failure(f"lecture impossible: {e}")
        try:
            return SidecarParseResult(records=(self.parse_bytes(data, kind),))
        except VsmetaFormatError as e:
            return SidecarParseResult.failure(f"VSMETA invalide: {e}")

    def parse_bytes(self, data: bytes, kind: EntityKind) -> SidecarMetadata:
        """
        Decode le contenu d'un fichier VSMETA.

        Pour un episode, le titre principal est celui de la serie : le
        titre de l'episode est dans le champ "tagline".

        Raises:
            VsmetaFormatError: Si le contenu est tronque
        """
        values: dict[int, Value] = {}
        for number, value in _fields(data):
            values.setdefault(number, value)

        title = _string(values.get(FIELD_TITLE))
        tagline = _string(values.get(FIELD_TAGLINE))
        season = episode = UNKNOWN_NUMBER
        if kind is EntityKind.EPISODE:
            title, tagline = tagline or title, ""
            group = values.get(FIELD_EPISODE_GROUP)
            if isinstance(group, bytes):
                numbers = dict(_fields(group))
                season = _number(numbers.get(FIELD_SEASON), UNKNOWN_NUMBER)
                episode = _number(numbers.get(FIELD_EPISODE), UNKNOWN_NUMBER)

        released = _date(_string(values.get(FIELD_RELEASE_DATE)))
        year = _number(values.get(FIELD_YEAR), 0) or (released.year if released else 0)
        return SidecarMetadata(
            title=title,
            original_title=_string(values.get(FIELD_ORIGINAL_TITLE)),
            tagline=tagline,
            year=year,
            plot=_string(values.get(FIELD_PLOT)),
            first_aired=released,
            season=season,
            episode=episode,
            locked=bool(_number(values.get(FIELD_LOCKED), 0)),
        )


def _fields(data: bytes) -> Iterator[tuple[int, Value]]:
    position = 0
    while position < len(data):
        key, position = _varint(data, position)
        number, wire = key >> 3, key & 0x07
        if wire == WIRE_VARINT:
            value, position = _varint(data, position)
            yield number, value
        elif wire == WIRE_BYTES:
            length, position = _varint(data, position)
            end = position + length
            if end > len(data):
                raise VsmetaFormatError(f"bloc tronque (champ {number})")
            yield number, data[position:end]
            position = end
        elif wire == WIRE_FIXED64:
            position += 8
        elif wire == WIRE_FIXED32:
            position += 4
        else:
            raise VsmetaFormatError(f"type de champ inconnu {wire} (champ {number})")


def _varint(data: bytes, position: int) -> tuple[int, int]:
    result = shift = 0
    while True:
        if position >= len(data):
            raise VsmetaFormatError("varint tronque")
        byte = data[position]
        position += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, position
        shift += 7


def _string(value: Optional[Value]) -> str:
    if not isinstance(value, bytes):
        return ""
    return value.decode("utf-8", errors="replace").strip()


def _number(value: Optional[Value], default: int) -> int:
    return value if isinstance(value, int) else default


def _date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value[:10]) if value else None
    except ValueError:
        return None
