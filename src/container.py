"""
Container d'injection de dependances via dependency-injector.

Fournit une gestion centralisee des dependances pour la CLI : configuration,
base de donnees, repository de la bibliotheque, lecteurs de fichiers
compagnons, cache des vignettes et scanners.
"""

from dependency_injector import containers, providers
from sqlmodel import Session

from .adapters.image_cache import ImageCache
from .adapters.sidecar import default_parsers
from .config import Settings
from .infrastructure.persistence.database import init_db
from .infrastructure.persistence.repositories import SQLModelLibraryRepository
from .services.scanning import (
    MessageLog,
    MetadataSeeder,
    MovieScanner,
    ScanConfig,
    TvShowScanner,
)


class Container(containers.DeclarativeContainer):
    """Container DI de l'application.

    Utilisation :
        container = Container()
        container.database.init()  # Initialise la DB une fois
        scanner = container.movie_scanner()
        summary = scanner.update_datasources(container.config().movie_datasources)
    """

    # Configuration - singleton charge une seule fois
    config = providers.Singleton(Settings)

    # Database - Resource pour initialisation unique, fournit l'engine
    database = providers.Resource(init_db, database_url=config.provided.database_url)

    # Session partagee par le repository (les ecritures sont serialisees)
    session = providers.Singleton(Session, database)

    # Repository - Singleton : l'index en memoire est charge une fois par execution
    library_repository = providers.Singleton(
        SQLModelLibraryRepository,
        session=session,
    )

    # Adapters - implementations concretes des ports
    sidecar_parsers = providers.Callable(default_parsers)
    image_cache = providers.Singleton(
        ImageCache,
        cache_dir=config.provided.image_cache_dir,
    )

    # Services de scan
    scan_config = providers.Singleton(ScanConfig.from_settings, config)
    message_log = providers.Singleton(MessageLog)
    metadata_seeder = providers.Singleton(MetadataSeeder, parsers=sidecar_parsers)

    # Scanners - Factory : chaque commande obtient un scanner neuf
    movie_scanner = providers.Factory(
        MovieScanner,
        repository=library_repository,
        seeder=metadata_seeder,
        messages=message_log,
        config=scan_config,
        image_cache=image_cache,
    )
    tvshow_scanner = providers.Factory(
        TvShowScanner,
        repository=library_repository,
        seeder=metadata_seeder,
        messages=message_log,
        config=scan_config,
        image_cache=image_cache,
    )
