# bizdir/shared/container.py
from dependency_injector import containers, providers

from bizdir.shared.config import DirectoryBackend, settings
from bizdir.adapters.directory.api_client import DirectoryApiClient
from bizdir.adapters.directory.filesystem_directory import FileSystemDirectory

from bizdir.core.location.catalog import LocationCatalog
from bizdir.core.location.resolver import SlugResolver
from bizdir.core.search.planner import FallbackSearchPlanner
from bizdir.core.use_cases.resolve_and_search import ResolveAndSearch

def build_directory(
    backend: DirectoryBackend,
    base_url: str,
    timeout: float,
    max_retries: int,
    seed_path: str,
):
    """Selects the adapter that backs all three directory ports."""
    if DirectoryBackend(backend) == DirectoryBackend.FILESYSTEM:
        return FileSystemDirectory(seed_path=seed_path)
    return DirectoryApiClient(base_url=base_url, timeout=timeout, max_retries=max_retries)

class Container(containers.DeclarativeContainer):
    """
    Dependency Injection Container.

    Assembly instructions for the listing pipeline.
    """

    # 1. Gateways (Infrastructure Adapters)

    # One adapter implements ILocationDirectory, IBusinessSearch and
    # ICategoryRepository (Singleton: one HTTP connection pool per process).
    directory = providers.Singleton(
        build_directory,
        backend=settings.DIRECTORY_BACKEND,
        base_url=settings.DIRECTORY_API_BASE_URL,
        timeout=settings.DIRECTORY_API_TIMEOUT,
        max_retries=settings.DIRECTORY_API_MAX_RETRIES,
        seed_path=settings.DIRECTORY_SEED_PATH,
    )

    # Catalog cache lives for the whole process
    catalog = providers.Singleton(
        LocationCatalog,
        directory=directory,
    )

    # 2. Domain Services (stateless, per request)

    slug_resolver = providers.Factory(
        SlugResolver,
        catalog=catalog,
    )

    search_planner = providers.Factory(
        FallbackSearchPlanner,
        search=directory,
        catalog=catalog,
        fallback_enabled=settings.CLIENT_FALLBACK_ENABLED,
        global_label=settings.GLOBAL_SCOPE_LABEL,
    )

    # 3. Use Cases (Application Logic)

    resolve_and_search_use_case = providers.Factory(
        ResolveAndSearch,
        resolver=slug_resolver,
        planner=search_planner,
        categories=directory,
    )

# Instantiate the container for global access (e.g. by FastAPI)
container = Container()
