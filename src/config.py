"""
Configuration de l'application via pydantic-settings.

La configuration est chargée depuis les variables d'environnement avec le préfixe CINESCAN_,
et peut optionnellement être fournie via un fichier .env.

Les listes (sources de données, motifs à ignorer, mots parasites) se
fournissent au format JSON :
    CINESCAN_MOVIE_DATASOURCES='["/media/films", "/mnt/nas/films"]'
"""

from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.utils.constants import (
    DEFAULT_AUDIO_EXTENSIONS,
    DEFAULT_SUBTITLE_EXTENSIONS,
    DEFAULT_VIDEO_EXTENSIONS,
)

# Trouver le fichier .env à la racine du projet (parent de src/)
_PROJECT_ROOT = Path(__file__).parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Paramètres de l'application avec support des variables d'environnement.

    Tous les paramètres peuvent être surchargés via des variables d'environnement
    avec le préfixe CINESCAN_.
    Exemple : CINESCAN_LOG_LEVEL=DEBUG

    Les chemins sont automatiquement étendus (~ -> répertoire home).
    """

    model_config = SettingsConfigDict(
        env_prefix="CINESCAN_",
        env_file=_ENV_FILE if _ENV_FILE.exists() else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Sources de données
    movie_datasources: list[Path] = Field(default_factory=list)
    tvshow_datasources: list[Path] = Field(default_factory=list)
    movieset_data_folder: Optional[Path] = Field(default=None)

    # Filtrage du scan
    skip_folders: list[str] = Field(default_factory=list)
    badwords: list[str] = Field(default_factory=list)
    video_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_VIDEO_EXTENSIONS))
    audio_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_AUDIO_EXTENSIONS))
    subtitle_extensions: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUBTITLE_EXTENSIONS)
    )

    # Traitement (3 workers comme l'outil d'origine, 1 pour un disque lent)
    update_workers: int = Field(default=3, ge=1, le=8)

    # Base de données et cache
    database_url: str = Field(default="sqlite:///~/.local/share/cinescan/cinescan.db")
    image_cache_dir: Path = Field(default=Path("~/.cache/cinescan/images"))

    # Logging (fichier + stderr, rotation 10MB, 5 fichiers de rétention)
    log_level: str = Field(default="INFO")
    log_file: Path = Field(default=Path("~/.local/share/cinescan/logs/cinescan.log"))
    log_rotation_size: str = Field(default="10 MB")
    log_retention_count: int = Field(default=5)

    @field_validator("image_cache_dir", "log_file", "movieset_data_folder", mode="before")
    @classmethod
    def expand_path(cls, v: Optional[str | Path]) -> Optional[Path]:
        """Étend ~ vers le répertoire home dans les chemins."""
        if v is None or v == "":
            return None
        return Path(v).expanduser()

    @field_validator("movie_datasources", "tvshow_datasources", mode="after")
    @classmethod
    def expand_datasources(cls, v: list[Path]) -> list[Path]:
        """Étend ~ et supprime les doublons en conservant l'ordre."""
        seen: list[Path] = []
        for path in v:
            expanded = Path(path).expanduser()
            if expanded not in seen:
                seen.append(expanded)
        return seen

    @field_validator("video_extensions", "audio_extensions", "subtitle_extensions", mode="after")
    @classmethod
    def normalize_extensions(cls, v: list[str]) -> list[str]:
        """Normalise les extensions en minuscules avec un point initial."""
        return [ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in v if ext]

    @property
    def sqlite_path(self) -> Optional[Path]:
        """Chemin du fichier SQLite (None pour une base en mémoire ou non SQLite)."""
        prefix = "sqlite:///"
        if not self.database_url.startswith(prefix):
            return None
        raw = self.database_url[len(prefix):]
        if not raw or raw == ":memory:":
            return None
        return Path(raw).expanduser()
