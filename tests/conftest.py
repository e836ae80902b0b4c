import logging
import textwrap
from pathlib import Path

import pytest
import yaml

from uniload.loader import reset_default_loader


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep config home, release and package dir away from the real user setup."""
    monkeypatch.setenv("UNILOAD_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("UNILOAD_RELEASE", raising=False)
    monkeypatch.delenv("UNILOAD_PACKAGE_DIR", raising=False)
    reset_default_loader()
    yield
    reset_default_loader()

    # CLI runs install handlers bound to captured streams
    logger = logging.getLogger("uniload")
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def package_dir(tmp_path):
    """Create an empty package directory."""
    path = tmp_path / "packages"
    path.mkdir()
    return path


@pytest.fixture
def make_package(package_dir):
    """
    Write a package (manifest + sources) into package_dir.

    Usage:
        make_package("http", {"main.py": "x = 1"}, uses=["json-utils"])
    """
    def _make(name: str, files: dict[str, str] | None = None, **manifest) -> Path:
        pkg_dir = package_dir / name
        pkg_dir.mkdir(parents=True, exist_ok=True)
        data = {"name": name, "version": "1.0.0", **manifest}
        (pkg_dir / "package.yaml").write_text(yaml.safe_dump(data, sort_keys=False))
        for filename, source in (files or {}).items():
            (pkg_dir / filename).write_text(textwrap.dedent(source))
        return pkg_dir

    return _make
