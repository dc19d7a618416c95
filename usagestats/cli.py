"""Click CLI entry point for usagestats."""
from __future__ import annotations

import json
import logging
import sys

import click
from rich.console import Console
from rich.table import Table

from usagestats import __version__
from usagestats.config import (
    CONFIG_KEY, UsageStatsConfig, get_config_path, load_config, save_config,
)
from usagestats.decode import load_private_key, decrypt_payload
from usagestats.errors import UsageStatsError
from usagestats.host import StaticHost
from usagestats.keys import DEFAULT_KEY_IMAGE
from usagestats.models import Snapshot
from usagestats.reporter import UsageStatistics
from usagestats.snapshot import SnapshotBuilder

# Accepted spellings of the opt-out key on the command line
CONFIG_KEYS = ("usage-statistics", "usage_statistics", "telemetry")


@click.group()
@click.version_option(version=__version__, prog_name="usagestats")
@click.option("--verbose", is_flag=True, help="Debug logging to stderr")
def cli(verbose: bool) -> None:
    """usagestats - prepare encrypted usage statistics payloads."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
    )


def _load_host(inventory_path: str) -> StaticHost:
    try:
        with open(inventory_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return StaticHost.from_dict(data)
    except (OSError, json.JSONDecodeError, ValueError) as e:
        raise click.ClickException(f"Cannot load inventory {inventory_path}: {e}")


def _render_snapshot(snapshot: Snapshot) -> None:
    c = Console()
    c.print(f"[bold]Usage snapshot[/bold]  version {snapshot.version}")
    c.print(f"  [dim]install {snapshot.install}[/dim]")

    nodes = Table(title="Nodes", title_justify="left")
    nodes.add_column("Master")
    nodes.add_column("Executors", justify="right")
    nodes.add_column("OS")
    nodes.add_column("Runtime")
    for n in snapshot.nodes:
        runtime = f"{n.jvm_vendor} {n.jvm_version}" if n.master else ""
        nodes.add_row("yes" if n.master else "", str(n.executors), n.os or "[dim]n/a[/dim]", runtime)
    c.print(nodes)

    plugins = Table(title="Active plugins", title_justify="left")
    plugins.add_column("Name")
    plugins.add_column("Version")
    for p in snapshot.plugins:
        plugins.add_row(p.name, p.version)
    c.print(plugins)

    jobs = Table(title="Jobs", title_justify="left")
    jobs.add_column("Type")
    jobs.add_column("Count", justify="right")
    for type_id, count in snapshot.jobs.items():
        jobs.add_row(type_id, str(count))
    c.print(jobs)


@cli.command()
@click.argument("inventory", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "json_output", is_flag=True, help="Print the snapshot as JSON")
def snapshot(inventory: str, json_output: bool) -> None:
    """Build a usage snapshot from an INVENTORY JSON file."""
    snap = SnapshotBuilder(_load_host(inventory)).build()
    if json_output:
        click.echo(json.dumps(snap.to_dict(), indent=2))
    else:
        _render_snapshot(snap)


@cli.command()
@click.argument("inventory", type=click.Path(exists=True, dir_okay=False))
@click.option("--key-file", type=click.Path(exists=True, dir_okay=False),
              help="File holding a hex DER public key instead of the built-in one")
@click.option("--config-dir", default=".", type=click.Path(file_okay=False),
              help="Directory whose .usagestats/config.json holds the opt-out")
def encode(inventory: str, key_file: str | None, config_dir: str) -> None:
    """Print the encrypted payload for an INVENTORY JSON file."""
    key_image = DEFAULT_KEY_IMAGE
    if key_file:
        with open(key_file, "r", encoding="utf-8") as f:
            key_image = "".join(f.read().split())

    stats = UsageStatistics(
        _load_host(inventory),
        key_image=key_image,
        config=UsageStatsConfig.from_dir(config_dir),
    )
    if not stats.is_due():
        click.echo("Usage statistics are disabled; nothing to encode.", err=True)
        return
    try:
        click.echo(stats.get_stat_data())
    except UsageStatsError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.argument("payload", type=click.File("r"))
@click.option("--private-key", "private_key_path", required=True,
              type=click.Path(exists=True, dir_okay=False),
              help="PEM RSA private key matching the encrypting public key")
def decode(payload, private_key_path: str) -> None:
    """Decrypt a PAYLOAD file ('-' for stdin) and print its JSON."""
    with open(private_key_path, "rb") as f:
        pem = f.read()
    try:
        data = decrypt_payload(payload.read(), load_private_key(pem))
    except UsageStatsError as e:
        raise click.ClickException(str(e))
    click.echo(data.decode("utf-8"))


@cli.group()
def config() -> None:
    """Manage usagestats configuration."""
    pass


@config.command("set")
@click.argument("key")
@click.argument("value")
@click.argument("path", default=".", type=click.Path(exists=True))
def config_set(key: str, value: str, path: str) -> None:
    """Set a configuration value. Supports: usage-statistics (on/off)."""
    if key not in CONFIG_KEYS:
        click.echo(f"Unknown config key: {key}", err=True)
        sys.exit(1)
    if value not in ("on", "off"):
        click.echo("Value must be 'on' or 'off'", err=True)
        sys.exit(1)
    config_path = get_config_path(path)
    cfg = load_config(config_path)
    cfg[CONFIG_KEY] = (value == "on")
    save_config(config_path, cfg)
    click.echo(f"Usage statistics {'enabled' if value == 'on' else 'disabled'}.")


@config.command("get")
@click.argument("key")
@click.argument("path", default=".", type=click.Path(exists=True))
def config_get(key: str, path: str) -> None:
    """Get a configuration value."""
    if key not in CONFIG_KEYS:
        click.echo(f"Unknown config key: {key}", err=True)
        sys.exit(1)
    cfg = load_config(get_config_path(path))
    status = "on" if cfg.get(CONFIG_KEY, True) else "off"
    click.echo(f"usage-statistics: {status}")


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
