"""
Bundler and Image - compile a resolved graph and run it against an Environment.

ImageBundler reads and compiles every selected source file up front, so
missing files and syntax errors are reported as build diagnostics before
any package code runs.

Image.load() then executes each package, dependencies first, in its own
fresh module object. Modules are never registered in sys.modules: every
load produces a distinct copy of the packages.

Names injected into every package module:
    startup                      Register a startup hook (Bootstrap.register_hook)
    Package                      Dict of exports of the packages loaded before this one
    __uniload_bootstrap__        The Environment's Bootstrap
    __uniload_runtime_config__   The Environment's RuntimeConfig
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from types import CodeType, ModuleType, SimpleNamespace
from typing import Any

from uniload.cache import LoadResult
from uniload.environment import Environment
from uniload.errors import BuildError
from uniload.messages import MessageSet
from uniload.resolver import DependencyGraph, ResolvedPackage


MODULE_PREFIX = "uniload.packages"

INJECTED_NAMES = frozenset({
    "startup",
    "Package",
    "__uniload_bootstrap__",
    "__uniload_runtime_config__",
})


@dataclass
class CompiledPackage:
    """A resolved package with its compiled source files."""
    package: ResolvedPackage
    code: list[CodeType] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.package.name


class Image:
    """An executable unit built from a DependencyGraph."""

    def __init__(self, target: str, units: list[CompiledPackage]):
        self.target = target
        self.units = units

    def names(self) -> list[str]:
        return [u.name for u in self.units]

    def load(self, environment: Environment) -> LoadResult:
        """
        Execute every package and collect its exports.

        Package code may register startup hooks through `startup`; they land
        in environment.bootstrap and are run by the caller afterwards.

        Returns:
            Mapping of package name to exports namespace, for every package
            in the image (dependencies included)

        Raises:
            BuildError: If a package does not define a declared export
            Exception: Anything raised by package code, unchanged
        """
        loaded: dict[str, SimpleNamespace] = {}

        for unit in self.units:
            module = ModuleType(f"{MODULE_PREFIX}.{unit.name}")
            module.__dict__.update({
                "startup": environment.bootstrap.register_hook,
                "Package": dict(loaded),
                "__uniload_bootstrap__": environment.bootstrap,
                "__uniload_runtime_config__": environment.runtime_config,
            })
            for code in unit.code:
                exec(code, module.__dict__)

            loaded[unit.name] = SimpleNamespace(**_collect_exports(unit, module))

        return loaded

    def __repr__(self) -> str:
        return f"Image(target={self.target}, packages={self.names()})"


def _collect_exports(unit: CompiledPackage, module: ModuleType) -> dict[str, Any]:
    namespace = vars(module)
    declared = unit.package.manifest.exports

    if declared is None:
        return {
            k: v for k, v in namespace.items()
            if not k.startswith("_")
            and k not in INJECTED_NAMES
            and not isinstance(v, ModuleType)
        }

    exports = {}
    for name in declared:
        if name not in namespace:
            raise BuildError(
                f"Package does not define declared export '{name}'",
                package=unit.name,
            )
        exports[name] = namespace[name]
    return exports


class Bundler(ABC):
    """Abstract base class for image bundlers."""

    @abstractmethod
    def build_image(
        self,
        graph: DependencyGraph,
        messages: MessageSet,
        target: str = "load",
    ) -> Image:
        """
        Build an Image from a resolved graph.

        Problems are reported into messages; the returned Image must not
        be run when messages were reported.
        """
        pass


class ImageBundler(Bundler):
    """Bundler that compiles package sources from disk."""

    def build_image(
        self,
        graph: DependencyGraph,
        messages: MessageSet,
        target: str = "load",
    ) -> Image:
        units = []
        for package in graph:
            unit = CompiledPackage(package=package)
            for path in package.files():
                try:
                    source = path.read_text(encoding="utf-8")
                except OSError as e:
                    messages.error(
                        f"Cannot read source file: {e.strerror or e}",
                        kind=BuildError.kind,
                        package=package.name,
                        file=str(path),
                    )
                    continue
                except UnicodeDecodeError as e:
                    messages.error(
                        f"Source file is not valid UTF-8: {e.reason} at byte {e.start}",
                        kind=BuildError.kind,
                        package=package.name,
                        file=str(path),
                    )
                    continue

                try:
                    unit.code.append(compile(source, str(path), "exec"))
                except SyntaxError as e:
                    messages.error(
                        f"Syntax error: {e.msg}",
                        kind=BuildError.kind,
                        package=package.name,
                        file=str(path),
                        line=e.lineno,
                    )
                except ValueError as e:
                    # null bytes in source
                    messages.error(
                        f"Invalid source: {e}",
                        kind=BuildError.kind,
                        package=package.name,
                        file=str(path),
                    )
            units.append(unit)

        return Image(target, units)
