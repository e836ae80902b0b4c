"""
Package resolution - turn requested identifiers into a load-ordered graph.

The resolver:
- Reads manifests from a single local package directory (no other sources)
- Walks `uses` dependencies depth-first and emits packages dependencies-first
- Merges slices when a package is requested more than once
- Reports every problem it finds into the MessageSet, not just the first

Manifests are consumed verbatim. There is no version solving: the only
version check is the optional project pin file (constraints.yaml), which
the loader always asks the resolver to ignore.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Optional, Sequence

import yaml

from uniload.catalog import PackageCatalog, PackageManifest, parse_package_id
from uniload.errors import ResolutionError
from uniload.messages import MessageSet


CONSTRAINTS_FILENAME = "constraints.yaml"


@dataclass(frozen=True)
class ResolveOptions:
    """
    Options for a resolution attempt.

    Attributes:
        search_dir: The only directory packages are read from
        ignore_project_constraints: Skip the constraints.yaml pin check
    """
    search_dir: Path
    ignore_project_constraints: bool = True


@dataclass
class ResolvedPackage:
    """A package in the graph, with the slices selected for this load."""
    manifest: PackageManifest
    slices: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def version(self) -> str:
        return self.manifest.version

    def files(self) -> list[Path]:
        """Source files of the selected slices, in order, without repeats."""
        seen: set[Path] = set()
        result = []
        for slice_name in self.slices:
            for path in self.manifest.slice_files(slice_name):
                if path not in seen:
                    seen.add(path)
                    result.append(path)
        return result


@dataclass
class DependencyGraph:
    """
    Resolved packages in load order (every dependency before its users).

    Attributes:
        packages: Resolved packages, dependencies first
        roots: Names of the directly requested packages, in request order
    """
    packages: list[ResolvedPackage] = field(default_factory=list)
    roots: list[str] = field(default_factory=list)

    def names(self) -> list[str]:
        return [p.name for p in self.packages]

    def get(self, name: str) -> Optional[ResolvedPackage]:
        for package in self.packages:
            if package.name == name:
                return package
        return None

    def __iter__(self) -> Iterator[ResolvedPackage]:
        return iter(self.packages)

    def __len__(self) -> int:
        return len(self.packages)

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None


class PackageResolver(ABC):
    """Abstract base class for package resolvers."""

    @abstractmethod
    def resolve(
        self,
        package_ids: Sequence[str],
        options: ResolveOptions,
        messages: MessageSet,
    ) -> DependencyGraph:
        """
        Resolve package identifiers into a DependencyGraph.

        Problems are reported into messages. The returned graph may be
        incomplete when messages were reported.
        """
        pass


class LocalPackageResolver(PackageResolver):
    """Resolver over prebuilt packages in a local directory."""

    def __init__(self, catalog_factory: Callable[[Path], PackageCatalog] = PackageCatalog):
        self._catalog_factory = catalog_factory

    def resolve(
        self,
        package_ids: Sequence[str],
        options: ResolveOptions,
        messages: MessageSet,
    ) -> DependencyGraph:
        walk = _Walk(self._catalog_factory(options.search_dir), messages)

        roots: list[str] = []
        for identifier in package_ids:
            walk.visit(identifier, used_by=None)
            name = identifier.partition(".")[0]
            if name and name not in roots:
                roots.append(name)

        graph = DependencyGraph(
            packages=[
                ResolvedPackage(manifest=walk.manifests[name], slices=walk.slices[name])
                for name in walk.order
            ],
            roots=roots,
        )

        if not options.ignore_project_constraints:
            _check_constraints(graph, options.search_dir, messages)

        return graph


class _Walk:
    """Depth-first walk state for one resolve() call."""

    def __init__(self, catalog: PackageCatalog, messages: MessageSet):
        self.catalog = catalog
        self.messages = messages
        self.manifests: dict[str, PackageManifest] = {}
        self.slices: dict[str, list[str]] = {}
        self.order: list[str] = []
        self._visiting: list[str] = []
        self._done: set[str] = set()
        self._reported: set[str] = set()

    def _report_once(self, key: str, error: ResolutionError, used_by: Optional[str]) -> None:
        if key in self._reported:
            return
        self._reported.add(key)
        text = str(error) if used_by is None else f"{error} (used by {used_by})"
        self.messages.error(
            text, kind=error.kind, package=error.package, file=error.file, line=error.line
        )

    def visit(self, identifier: str, used_by: Optional[str]) -> None:
        try:
            name, slice_name = parse_package_id(identifier)
        except ValueError as e:
            self._report_once(identifier, ResolutionError(str(e), package=used_by), None)
            return

        try:
            manifest = self.catalog.get(name)
        except ResolutionError as e:
            self._report_once(name, e, used_by)
            return

        if not manifest.has_slice(slice_name):
            self._report_once(
                identifier,
                ResolutionError(f"Unknown slice '{slice_name}'", package=name),
                used_by,
            )
            return

        self.manifests[name] = manifest
        selected = self.slices.setdefault(name, [])
        if slice_name not in selected:
            selected.append(slice_name)

        if name in self._done:
            return

        if name in self._visiting:
            cycle = self._visiting[self._visiting.index(name):] + [name]
            self._report_once(
                "cycle:" + name,
                ResolutionError("Dependency cycle: " + " -> ".join(cycle), package=name),
                None,
            )
            return

        self._visiting.append(name)
        for dependency in manifest.uses:
            self.visit(dependency, used_by=name)
        self._visiting.pop()

        self._done.add(name)
        self.order.append(name)


def _check_constraints(graph: DependencyGraph, search_dir: Path, messages: MessageSet) -> None:
    """Report packages whose version differs from the project pin file."""
    constraints_path = Path(search_dir).expanduser() / CONSTRAINTS_FILENAME
    if not constraints_path.is_file():
        return

    try:
        with open(constraints_path) as f:
            pins = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        messages.error(f"Invalid YAML: {e}", kind=ResolutionError.kind, file=str(constraints_path))
        return

    if not isinstance(pins, dict):
        messages.error(
            "Constraints file must map package names to versions",
            kind=ResolutionError.kind,
            file=str(constraints_path),
        )
        return

    for package in graph:
        pinned = pins.get(package.name)
        if pinned is not None and str(pinned) != package.version:
            messages.error(
                f"Version {package.version} does not satisfy pinned version {pinned}",
                kind=ResolutionError.kind,
                package=package.name,
            )
