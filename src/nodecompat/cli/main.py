"""CLI entry point for nodecompat.

Invoked as::

    nodecompat [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m nodecompat.cli.main

Commands
--------
version     Show version information
plugins     List registered build plugins
classify    Classify import specifiers against the Node.js built-in list
preset      Query and dump the compatibility preset
prelude     Print the generated global prelude modules
check       Run one simulated build pass over a list of imports
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table

if TYPE_CHECKING:
    from nodecompat.config.settings import CompatConfig
    from nodecompat.host.types import ResolveArgs
    from nodecompat.plugins.base import PluginServices

console = Console()
err_console = Console(stderr=True)

_KIND_CHOICES = ["import", "require", "dynamic"]


def _configure_logging(verbose: bool) -> None:
    """Route the ``nodecompat`` loggers to a Rich handler on stderr."""
    logger = logging.getLogger("nodecompat")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)
    handler = RichHandler(console=err_console, show_path=False, show_time=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _services(ctx: click.Context) -> "PluginServices":
    from nodecompat.plugins.base import PluginServices

    obj = ctx.find_root().obj or {}
    services = obj.get("services")
    return services if services is not None else PluginServices()


def _load_config_or_exit(path: str) -> "CompatConfig":
    """Load a configuration file, printing the error and exiting on failure."""
    from nodecompat.config import load_config
    from nodecompat.errors import ConfigError

    try:
        return load_config(path)
    except ConfigError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)


def _read_requests(path: str) -> list["ResolveArgs"]:
    """Read a YAML or JSON list of ``{specifier, kind, importer}`` requests."""
    from nodecompat.host.types import ResolveArgs, ResolveKind

    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        err_console.print(f"[red]Error:[/red] Cannot read {path}: {exc}")
        sys.exit(1)
    except yaml.YAMLError as exc:
        err_console.print(f"[red]Error:[/red] Invalid YAML in {path}: {exc}")
        sys.exit(1)

    if not isinstance(data, list):
        err_console.print(f"[red]Error:[/red] {path} must contain a list of imports")
        sys.exit(1)

    requests: list[ResolveArgs] = []
    for index, item in enumerate(data):
        if isinstance(item, str):
            item = {"specifier": item}
        if not isinstance(item, dict) or not isinstance(item.get("specifier"), str):
            err_console.print(
                f"[red]Error:[/red] entry {index} of {path} needs a 'specifier' string"
            )
            sys.exit(1)
        try:
            kind = ResolveKind.parse(item.get("kind", "import"))
        except ValueError as exc:
            err_console.print(f"[red]Error:[/red] entry {index} of {path}: {exc}")
            sys.exit(1)
        requests.append(
            ResolveArgs(
                item["specifier"],
                kind,
                importer=str(item.get("importer", "")),
                resolve_dir=str(item.get("resolve_dir", "")),
            )
        )
    return requests


def _dump(data: Any, output_format: str) -> str:
    if output_format == "json":
        return json.dumps(data, indent=2, sort_keys=True)
    return yaml.safe_dump(data, sort_keys=True, default_flow_style=False)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="nodecompat")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Node.js built-in compatibility for bundles targeting non-Node runtimes."""
    ctx.ensure_object(dict)
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# version command
# ---------------------------------------------------------------------------


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from nodecompat import __version__
    from nodecompat.preset.providers import DEFAULT_UNENV_VERSION

    table = Table(show_header=False, box=None)
    table.add_row("[bold]nodecompat[/bold]", f"v{__version__}")
    table.add_row("unenv (default)", DEFAULT_UNENV_VERSION)
    table.add_row("Python", f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}")
    table.add_row("Platform", sys.platform)
    console.print(table)


# ---------------------------------------------------------------------------
# plugins command
# ---------------------------------------------------------------------------


@cli.command(name="plugins")
def plugins_command() -> None:
    """List all registered build plugins, including entry-point plugins."""
    from nodecompat.plugins import load_builtin_plugins

    registry = load_builtin_plugins()
    registry.load_entrypoints()

    console.print("[bold]Registered plugins:[/bold]")
    for name in registry.list_plugins():
        console.print(f"  {name}  [dim]{registry.get(name).__name__}[/dim]")


# ---------------------------------------------------------------------------
# classify command
# ---------------------------------------------------------------------------


@cli.command(name="classify")
@click.argument("specifiers", nargs=-1, required=True)
@click.option(
    "--kind",
    type=click.Choice(_KIND_CHOICES, case_sensitive=False),
    default="import",
    help="How the specifiers are reached (default: import)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["esm", "cjs", "iife"], case_sensitive=False),
    default="esm",
    help="Bundle output format (default: esm)",
)
def classify_command(specifiers: tuple[str, ...], kind: str, output_format: str) -> None:
    """Classify SPECIFIERS against the bundled Node.js built-in list.

    Examples:

    \b
        nodecompat classify fs node:test left-pad
        nodecompat classify fs --kind require
    """
    from nodecompat.classifier import SpecifierClassifier
    from nodecompat.host.types import OutputFormat, ResolveKind

    classifier = SpecifierClassifier()
    resolve_kind = ResolveKind.parse(kind)
    fmt = OutputFormat(output_format.lower())

    table = Table(title=f"Classification ({resolve_kind.value}, {fmt.value})")
    table.add_column("Specifier", style="bold")
    table.add_column("Built-in")
    table.add_column("Require shim")

    for specifier in specifiers:
        result = classifier.classify(specifier, resolve_kind, fmt)
        table.add_row(
            specifier,
            "[green]yes[/green]" if result.is_builtin else "[dim]no[/dim]",
            "yes" if result.needs_require_shim else "[dim]no[/dim]",
        )
    console.print(table)


# ---------------------------------------------------------------------------
# preset command
# ---------------------------------------------------------------------------


@cli.command(name="preset")
@click.argument("config_file", type=click.Path(exists=False))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "yaml"], case_sensitive=False),
    default="json",
    help="Preset output format",
)
@click.option("--output", "-o", default=None, help="Output file path (defaults to stdout)")
@click.pass_context
def preset_command(ctx: click.Context, config_file: str, output_format: str, output: str | None) -> None:
    """Query the compatibility preset for CONFIG_FILE and dump it."""
    from nodecompat.errors import SetupError
    from nodecompat.preset import NodePresetProvider, PresetResolver

    config = _load_config_or_exit(config_file)
    provider = _services(ctx).provider
    if provider is None:
        provider = NodePresetProvider(
            node_binary=config.node_binary,
            package_manager=config.package_manager,
            install=config.install_preset,
            unenv_version=config.unenv_version,
            timeout=config.timeout_seconds,
        )

    try:
        preset = PresetResolver(provider).resolve(
            config.compatibility_date, config.compatibility_flags, config.base_path
        )
    except SetupError as exc:
        err_console.print(f"[red]Preset error:[/red] {exc}")
        sys.exit(1)

    text = _dump(preset.to_dict(), output_format.lower())
    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"[green]Preset written to[/green] {output}")
    else:
        console.print(Syntax(text, output_format.lower(), line_numbers=False))


# ---------------------------------------------------------------------------
# prelude command
# ---------------------------------------------------------------------------


@cli.command(name="prelude")
@click.argument("config_file", type=click.Path(exists=False))
@click.pass_context
def prelude_command(ctx: click.Context, config_file: str) -> None:
    """Print the global prelude modules generated for CONFIG_FILE."""
    from nodecompat.compat import NodeCompatPlugin
    from nodecompat.errors import SetupError
    from nodecompat.host import BuildHost, BuildOptions

    config = _load_config_or_exit(config_file)
    plugin = NodeCompatPlugin.from_config(config, _services(ctx))
    try:
        BuildHost([plugin], BuildOptions(format=config.output_format))
    except SetupError as exc:
        err_console.print(f"[red]Setup error:[/red] {exc}")
        sys.exit(1)

    assert plugin.injector is not None
    preludes = plugin.injector.preludes
    if not preludes:
        console.print("[dim]The preset injects no globals.[/dim]")
        return
    for prelude in preludes:
        console.print(f"[bold]// {prelude.path}[/bold]")
        console.print(Syntax(prelude.contents, "javascript", line_numbers=False))


# ---------------------------------------------------------------------------
# check command
# ---------------------------------------------------------------------------


@cli.command(name="check")
@click.argument("config_file", type=click.Path(exists=False))
@click.argument("imports_file", type=click.Path(exists=False))
@click.pass_context
def check_command(ctx: click.Context, config_file: str, imports_file: str) -> None:
    """Run one simulated build pass over the imports listed in IMPORTS_FILE.

    IMPORTS_FILE is a YAML or JSON list of entries such as
    ``{specifier: fs, kind: require, importer: /src/index.js}``.
    """
    from nodecompat.compat import create_host
    from nodecompat.errors import BuildError, SetupError

    config = _load_config_or_exit(config_file)
    requests = _read_requests(imports_file)

    try:
        host = create_host(config, _services(ctx))
    except SetupError as exc:
        err_console.print(f"[red]Setup error:[/red] {exc}")
        sys.exit(1)

    failed: BuildError | None = None
    try:
        report = host.run_pass(requests)
    except BuildError as exc:
        failed = exc
        report = exc.report

    if report is not None:
        table = Table(title=f"Resolutions: {imports_file}", show_lines=False)
        table.add_column("Specifier", style="bold")
        table.add_column("Kind")
        table.add_column("Result")
        for args, result in report.resolutions:
            if result is None:
                outcome = "[dim]default resolution[/dim]"
            elif result.external:
                outcome = f"[yellow]external[/yellow] {result.path}"
            else:
                outcome = f"{result.namespace}:{result.path}"
            table.add_row(args.path, args.kind.value, outcome)
        console.print(table)

        for message in report.messages:
            err_console.print(f"[yellow]Warning:[/yellow] {message.text}")

    if failed is not None:
        for error in failed.errors:
            err_console.print(f"[red]Error:[/red] {error.text}")
        sys.exit(1)

    console.print("[green]OK[/green] pass completed")


if __name__ == "__main__":
    cli()
