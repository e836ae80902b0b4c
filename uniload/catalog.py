"""
PackageCatalog - read prebuilt package manifests from the package directory.

Each package lives in its own directory with a package.yaml manifest:

    <package_dir>/
        http/
            package.yaml
            http.py
            client.py
        json-utils/
            package.yaml
            main.py

Manifest fields:
    name: Package name (must match the directory name, no dots)
    version: Version string, informational only
    uses: Package identifiers this package depends on ("name" or "name.slice")
    slices: Map of slice name to ordered source files (default: {default: [main.py]})
    exports: Names exported to the load result (default: every public name)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from uniload.errors import ResolutionError


MANIFEST_FILENAME = "package.yaml"
DEFAULT_SLICE = "default"
DEFAULT_MAIN = "main.py"


def parse_package_id(identifier: str) -> tuple[str, str]:
    """
    Split a package identifier into (name, slice).

    "http" selects the default slice, "http.client" selects "client".

    Raises:
        ValueError: If the name or slice part is empty
    """
    name, dot, slice_name = identifier.partition(".")
    if not name:
        raise ValueError(f"Invalid package identifier: {identifier!r}")
    if dot and not slice_name:
        raise ValueError(f"Invalid package identifier: {identifier!r} (empty slice)")
    return name, slice_name or DEFAULT_SLICE


@dataclass(frozen=True)
class PackageManifest:
    """
    A parsed package.yaml.

    Attributes:
        name: Package name
        version: Version string
        path: Directory containing the manifest
        uses: Dependency identifiers, in declaration order
        slices: Slice name -> source files relative to path
        exports: Exported names, or None to export every public name
    """
    name: str
    version: str
    path: Path
    uses: tuple[str, ...] = field(default_factory=tuple)
    slices: dict[str, tuple[str, ...]] = field(
        default_factory=lambda: {DEFAULT_SLICE: (DEFAULT_MAIN,)}
    )
    exports: Optional[tuple[str, ...]] = None

    def __post_init__(self):
        if not self.name or "." in self.name:
            raise ValueError(f"Invalid package name: {self.name!r}")
        if not self.slices:
            raise ValueError(f"Package {self.name} declares no slices")
        for slice_name, files in self.slices.items():
            if not files:
                raise ValueError(f"Package {self.name}: slice '{slice_name}' has no files")

    def has_slice(self, slice_name: str) -> bool:
        return slice_name in self.slices

    def slice_files(self, slice_name: str) -> list[Path]:
        """Absolute paths of the files in a slice."""
        return [self.path / f for f in self.slices[slice_name]]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for YAML/JSON output."""
        return {
            "name": self.name,
            "version": self.version,
            "uses": list(self.uses),
            "slices": {k: list(v) for k, v in self.slices.items()},
            **({"exports": list(self.exports)} if self.exports is not None else {}),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any], path: Path) -> "PackageManifest":
        """Deserialize from a manifest dictionary."""
        slices_data = data.get("slices") or {DEFAULT_SLICE: [DEFAULT_MAIN]}
        if not isinstance(slices_data, dict):
            raise ValueError("'slices' must be a mapping of slice name to file list")

        exports = data.get("exports")
        return cls(
            name=data["name"],
            version=str(data.get("version", "0.0.0")),
            path=path,
            uses=_string_list(data.get("uses"), "uses"),
            slices={
                str(k): _string_list(v, f"slices.{k}") for k, v in slices_data.items()
            },
            exports=_string_list(exports, "exports") if exports is not None else None,
        )


def _string_list(value: Any, field_name: str) -> tuple[str, ...]:
    """Validate an optional list of strings from a manifest field."""
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"'{field_name}' must be a list of strings")
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"'{field_name}' must contain only strings, got {item!r}")
    return tuple(value)


class PackageCatalog:
    """
    Manifest lookup over one package directory.

    Manifests are read lazily and cached for the lifetime of the catalog.
    A catalog is built per resolution attempt, so edits on disk are seen
    by the next attempt.
    """

    def __init__(self, search_dir: Path | str):
        self._search_dir = Path(search_dir).expanduser()
        self._cache: dict[str, PackageManifest] = {}

    @property
    def search_dir(self) -> Path:
        return self._search_dir

    def has(self, name: str) -> bool:
        return (self._search_dir / name / MANIFEST_FILENAME).is_file()

    def get(self, name: str) -> PackageManifest:
        """
        Load the manifest for a package.

        Raises:
            ResolutionError: If the package does not exist or its manifest is invalid
        """
        if name in self._cache:
            return self._cache[name]

        manifest_path = self._search_dir / name / MANIFEST_FILENAME
        if not manifest_path.is_file():
            raise ResolutionError(
                f"Unknown package: {name} (not found in {self._search_dir})",
                package=name,
            )

        try:
            with open(manifest_path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ResolutionError(
                f"Invalid YAML in manifest: {e}", package=name, file=str(manifest_path)
            )

        if not isinstance(data, dict):
            raise ResolutionError(
                "Manifest must be a mapping", package=name, file=str(manifest_path)
            )

        try:
            manifest = PackageManifest.from_dict(data, manifest_path.parent)
        except (KeyError, TypeError, ValueError) as e:
            raise ResolutionError(
                f"Invalid manifest: {e}", package=name, file=str(manifest_path)
            )

        if manifest.name != name:
            raise ResolutionError(
                f"Package name mismatch: directory is '{name}' but name is '{manifest.name}'",
                package=name,
                file=str(manifest_path),
            )

        self._cache[name] = manifest
        return manifest

    def list_packages(self) -> list[str]:
        """Sorted names of every package directory holding a manifest."""
        if not self._search_dir.is_dir():
            return []
        return sorted(
            p.parent.name for p in self._search_dir.glob(f"*/{MANIFEST_FILENAME}")
        )
