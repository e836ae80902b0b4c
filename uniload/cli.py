"""
CLI interface for uniload.

Provides commands to initialize configuration, inspect the local package
directory, and load packages into the CLI process itself (useful for
checking that a package set resolves, builds and starts cleanly).
"""


import click
from pathlib import Path
from rich.table import Table

from uniload import __version__


@click.group()
@click.version_option(version=__version__, prog_name="uniload")
@click.pass_context
def main(ctx):
    """
    uniload - Load prebuilt packages into the running process.
    """
    from uniload.config import UniloadConfig, load_config
    from uniload.utils import setup_logging

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config()
    except FileNotFoundError:
        ctx.obj["config"] = UniloadConfig()
    except Exception as e:
        # Commands that need a valid config report this themselves
        ctx.obj["config"] = UniloadConfig()
        ctx.obj["config_error"] = str(e)

    config = ctx.obj["config"]
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
    )


def _require_config(ctx) -> None:
    if "config_error" in ctx.obj:
        click.echo(f"✗ Config invalid: {ctx.obj['config_error']}", err=True)
        raise SystemExit(1)


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Initialize uniload configuration."""
    from uniload.config import DEFAULT_PACKAGE_DIR, DEFAULT_RELEASE, get_uniload_home
    import yaml

    home = get_uniload_home()
    if not home.exists():
        home.mkdir(parents=True)

    cfg_path = home / "config.yaml"
    if cfg_path.exists() and not force:
        click.echo(f"Config already exists at {cfg_path}. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    default_cfg = {
        "package_dir": DEFAULT_PACKAGE_DIR,
        "release": DEFAULT_RELEASE,
        "log_level": "INFO",
        "log_format": "pretty",
        "log_file": None,
        "env_file": str(home / ".env"),
    }
    cfg_path.write_text(yaml.safe_dump(default_cfg, sort_keys=False))

    env_path = home / ".env"
    if not env_path.exists():
        env_path.write_text("# UNILOAD_RELEASE=...\n# UNILOAD_PACKAGE_DIR=...\n")

    Path(DEFAULT_PACKAGE_DIR).expanduser().mkdir(parents=True, exist_ok=True)

    click.echo(f"Initialized uniload config at {cfg_path}")


@main.command("load")
@click.argument("packages", nargs=-1, required=True)
@click.option("--release", help="Release identifier to load under")
@click.option(
    "--package-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Package directory (overrides config)",
)
@click.pass_context
def load_packages(ctx, packages: tuple[str, ...], release: str, package_dir: Path):
    """
    Load PACKAGES into this process and list their exports.

    Each package is "name" or "name.slice".

    Examples:

        uniload load http

        uniload load http.client json-utils --release 1.4.2
    """
    from uniload.config import get_uniload_dir
    from uniload.errors import LoadFailedError
    from uniload.loader import Uniloader
    from uniload.release import current_release
    from uniload.utils import export_names

    _require_config(ctx)
    config = ctx.obj["config"]

    loader = Uniloader(
        release_provider=(lambda: release) if release else (lambda: current_release(config)),
        package_dir_locator=(lambda: package_dir) if package_dir else (lambda: get_uniload_dir(config)),
    )

    try:
        result = loader.load(list(packages))
    except LoadFailedError as e:
        click.echo(str(e), err=True)
        raise SystemExit(1)

    for name in result:
        names = export_names(result[name])
        click.echo(f"{name}: {', '.join(names) if names else '(no exports)'}")
    click.echo(f"✓ Loaded {len(result)} package(s)")


@main.group("packages")
def packages_group():
    """Inspect the local package directory."""
    pass


@packages_group.command("list")
@click.pass_context
def list_packages(ctx):
    """List available packages."""
    from uniload.catalog import PackageCatalog
    from uniload.config import get_uniload_dir
    from uniload.errors import ResolutionError
    from uniload.utils import console

    _require_config(ctx)
    catalog = PackageCatalog(get_uniload_dir(ctx.obj["config"]))

    names = catalog.list_packages()
    if not names:
        click.echo(f"No packages found in {catalog.search_dir}")
        return

    table = Table(title=str(catalog.search_dir))
    table.add_column("Package")
    table.add_column("Version")
    table.add_column("Slices")
    for name in names:
        try:
            manifest = catalog.get(name)
        except ResolutionError as e:
            table.add_row(name, "?", f"invalid: {e}")
            continue
        table.add_row(name, manifest.version, ", ".join(manifest.slices))
    console.print(table)


@packages_group.command("show")
@click.argument("name")
@click.pass_context
def show_package(ctx, name: str):
    """Show package manifest details."""
    import yaml

    from uniload.catalog import PackageCatalog
    from uniload.config import get_uniload_dir
    from uniload.errors import ResolutionError

    _require_config(ctx)
    catalog = PackageCatalog(get_uniload_dir(ctx.obj["config"]))

    try:
        manifest = catalog.get(name)
    except ResolutionError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Package: {manifest.name}")
    click.echo(f"Path: {manifest.path}")
    click.echo("")
    click.echo(yaml.safe_dump(manifest.to_dict(), sort_keys=False).rstrip())


if __name__ == "__main__":
    main()
