"""
Uniloader - load prebuilt packages into the running process, with a cache.

Load flow (one call):
1. Build the cache key from the requested identifiers, in request order
2. Flush the whole cache if the release changed since it was last recorded
3. Return the cached result on a hit (nothing else runs)
4. Build a fresh Environment
5. Inside one capture scope:
   a. Resolve identifiers (fresh resolver, project constraints ignored,
      fixed local package directory only)
   b. Build the image (fresh bundler)
   c. Run the image against the Environment
   d. Drain startup hooks in FIFO order; a hook failure propagates at once
   e. Switch the bootstrap to LIVE
6. Any messages: raise LoadFailedError, cache untouched
7. Otherwise store the result, record the release, return the result

Each call for a new key loads a distinct copy of the packages. Two calls
with the same identifiers in a different order are different keys.

Example:
    from uniload import load

    http = load(["http"])["http"]
    response = http.fetch("https://example.com")
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from uniload.bundler import Bundler, ImageBundler
from uniload.cache import CacheRegistry, LoadResult, cache_key
from uniload.config import UniloadConfig, get_uniload_dir, load_config
from uniload.environment import Environment, build_environment
from uniload.errors import DiagnosticError, HookError, LoadFailedError
from uniload.messages import MessageSet, capture
from uniload.release import current_release
from uniload.resolver import LocalPackageResolver, PackageResolver, ResolveOptions

logger = logging.getLogger(__name__)


LOAD_TITLE = "loading packages"
IMAGE_TARGET = "load"


class Uniloader:
    """
    Load orchestrator.

    The CacheRegistry is passed in so one registry can outlive any number
    of loaders; resolver and bundler are built fresh for every attempt.

    Usage:
        loader = Uniloader(
            CacheRegistry(),
            release_provider=lambda: "1.4.2",
            package_dir_locator=lambda: Path("/opt/tool/packages"),
        )
        result = loader.load(["http", "json-utils.strict"])

        # Or from configuration
        loader = Uniloader.from_config(load_config())
    """

    def __init__(
        self,
        cache: Optional[CacheRegistry] = None,
        *,
        release_provider: Callable[[], str],
        package_dir_locator: Callable[[], Path],
        resolver_factory: Callable[[], PackageResolver] = LocalPackageResolver,
        bundler_factory: Callable[[], Bundler] = ImageBundler,
        environment_factory: Callable[[], Environment] = build_environment,
    ):
        self._cache = cache if cache is not None else CacheRegistry()
        self._release_provider = release_provider
        self._package_dir_locator = package_dir_locator
        self._resolver_factory = resolver_factory
        self._bundler_factory = bundler_factory
        self._environment_factory = environment_factory

    @property
    def cache(self) -> CacheRegistry:
        return self._cache

    @classmethod
    def from_config(
        cls,
        config: UniloadConfig,
        cache: Optional[CacheRegistry] = None,
    ) -> "Uniloader":
        """Build a loader reading release and package dir from config."""
        return cls(
            cache,
            release_provider=lambda: current_release(config),
            package_dir_locator=lambda: get_uniload_dir(config),
        )

    def load(self, packages: Optional[Sequence[str]] = None) -> LoadResult:
        """
        Load packages and return their exports.

        Args:
            packages: Identifiers, each "name" or "name.slice"

        Returns:
            Mapping of package name to exports namespace, for every package
            loaded (dependencies included)

        Raises:
            LoadFailedError: Resolution or build problems (all of them)
            HookError: A startup hook raised a diagnostic-type error
            Exception: Anything else raised by package code or hooks, unchanged
        """
        packages = list(packages or [])
        key = cache_key(packages)
        release = self._release_provider()

        if release != self._cache.release:
            if self._cache.release is not None:
                logger.info(
                    f"Release changed ({self._cache.release} -> {release}), "
                    f"flushing {len(self._cache)} cached load(s)"
                )
            self._cache.invalidate_all(release)

        cached = self._cache.lookup(key)
        if cached is not None:
            logger.debug(f"Cache hit: [{key}]")
            return cached

        logger.info(
            f"Loading packages: [{key}] (release={release})",
            extra={"packages": packages, "release": release, "cache_key": key},
        )
        environment = self._environment_factory()
        result: Optional[LoadResult] = None

        def attempt(messages: MessageSet) -> None:
            nonlocal result
            result = self._attempt(packages, environment, messages)

        messages = capture(LOAD_TITLE, attempt)

        if messages.has_messages():
            logger.error(
                f"Errors prevented package load:\n{messages.format_messages()}",
                extra={"packages": packages, "release": release, "cache_key": key},
            )
            raise LoadFailedError(messages)

        self._cache.store(key, result)
        self._cache.record_release(release)
        logger.info(f"Loaded packages: [{key}] ({len(result)} package(s))")
        return result

    def _attempt(
        self,
        packages: list[str],
        environment: Environment,
        messages: MessageSet,
    ) -> Optional[LoadResult]:
        """Body of the capture scope. Returns None once messages exist."""
        resolver = self._resolver_factory()
        options = ResolveOptions(
            search_dir=self._package_dir_locator(),
            ignore_project_constraints=True,
        )
        graph = resolver.resolve(packages, options, messages)
        if messages.has_messages():
            return None

        bundler = self._bundler_factory()
        image = bundler.build_image(graph, messages, target=IMAGE_TARGET)
        if messages.has_messages():
            return None

        result = image.load(environment)

        bootstrap = environment.bootstrap
        try:
            ran = bootstrap.drain()
        except DiagnosticError as e:
            raise HookError(f"Startup hook raised {type(e).__name__}: {e}") from e
        bootstrap.go_live()
        logger.debug(f"Ran {ran} startup hook(s)")

        return result


# Process-wide loader, built on first use
_DEFAULT_LOADER: Optional[Uniloader] = None


def get_default_loader() -> Uniloader:
    """Get the process-wide loader, building it from config if needed."""
    global _DEFAULT_LOADER
    if _DEFAULT_LOADER is None:
        try:
            config = load_config()
        except FileNotFoundError:
            logger.debug("No uniload config.yaml found, using defaults")
            config = UniloadConfig()
        _DEFAULT_LOADER = Uniloader.from_config(config)
    return _DEFAULT_LOADER


def reset_default_loader() -> None:
    """Drop the process-wide loader and its cache."""
    global _DEFAULT_LOADER
    _DEFAULT_LOADER = None


def load(packages: Optional[Sequence[str]] = None) -> LoadResult:
    """Load packages through the process-wide loader. See Uniloader.load."""
    return get_default_loader().load(packages)
