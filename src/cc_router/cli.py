#!/usr/bin/env python3
"""
CC Router - MIDI CC to Ableton Live parameter router

Command line shell around RouterDevice: reads Control Change messages from
a MIDI input port and writes the mapped parameters through AbletonOSC.

Usage:
    cc-router ports
    cc-router run --port "Launch Control XL" --catalog catalog.json --automap
    cc-router convert-maps ./maps -o catalog.json
    cc-router catalog --catalog catalog.json
    cc-router test-cc 13 64 --session session.yaml --mapping 13:1:0:exponential
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
import mido
import yaml
from colorama import init, Fore, Style

from . import __version__
from .catalog import CanonicalCatalog, load_catalog
from .config import load_config, RouterConfig
from .device import RouterDevice
from .errors import CatalogError, MalformedMessage
from .live_session import StaticLiveSession
from .mappings import Curve
from .messages import CCMessage
from .osc_session import OscLiveSession


class Palette:
    """Terminal colours, blank when colour is disabled."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        if enabled:
            init()

    def __call__(self, color: str, text: str) -> str:
        if not self.enabled:
            return text
        return f"{color}{text}{Style.RESET_ALL}"

    def header(self, title: str) -> None:
        click.echo(f"\n{self(Fore.GREEN, '>> ' + title)}")
        click.echo("-" * 50)

    def success(self, message: str) -> None:
        click.echo(self(Fore.GREEN, f"[OK] {message}"))

    def warning(self, message: str) -> None:
        click.echo(self(Fore.YELLOW, f"[!] {message}"))

    def error(self, message: str) -> None:
        click.echo(self(Fore.RED, f"[X] {message}"), err=True)

    def status(self, token: str) -> None:
        color = Fore.RED if token.startswith("ERROR") else Fore.CYAN
        click.echo(self(color, f"  | {token}"))


def setup_logging(config: RouterConfig, verbose: bool = False) -> None:
    """Configure root logging from the 'logging' config section."""
    level_name = 'DEBUG' if verbose else str(config.get('logging', 'level', default='INFO')).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=config.get('logging', 'format', default=logging.BASIC_FORMAT),
        force=True,
    )


def parse_mapping_spec(spec: str) -> Tuple[int, int, int, Curve]:
    """Parse 'cc:device:param[:curve]'."""
    parts = spec.split(':')
    if len(parts) not in (3, 4):
        raise click.BadParameter(f"'{spec}' is not cc:device:param[:curve]")
    try:
        cc, device, param = (int(p) for p in parts[:3])
        curve = Curve.parse(parts[3] if len(parts) == 4 else None)
    except (ValueError, MalformedMessage) as e:
        raise click.BadParameter(f"'{spec}': {e}") from None
    return cc, device, param, curve


def _load_catalog_or_exit(pal: Palette, path: Optional[str]) -> CanonicalCatalog:
    try:
        return load_catalog(path)
    except CatalogError as e:
        pal.error(str(e))
        raise SystemExit(1)


def _resolve_input_port(pal: Palette, requested: Optional[str]) -> str:
    names = mido.get_input_names()
    if requested:
        for name in names:
            if requested == name or requested in name:
                return name
        pal.error(f"No MIDI input port matching '{requested}'")
    elif names:
        return names[0]
    else:
        pal.error("No MIDI input ports found")

    if names:
        click.echo("Available inputs:")
        for name in names:
            click.echo(f"  {name}")
    raise SystemExit(1)


@click.group()
@click.version_option(version=__version__, prog_name="cc-router")
@click.option('--config', 'config_path', type=click.Path(), default=None,
              help='Path to config.yaml (default: ./config.yaml or $CC_ROUTER_CONFIG)')
@click.option('--verbose', '-v', is_flag=True, help='Debug logging')
@click.option('--no-color', is_flag=True, envvar='NO_COLOR',
              help='Disable colored output')
@click.pass_context
def cli(ctx, config_path: Optional[str], verbose: bool, no_color: bool):
    """CC Router - route MIDI CC messages to Ableton Live plugin parameters."""
    ctx.ensure_object(dict)
    config = load_config(config_path)
    setup_logging(config, verbose)
    ctx.obj['config'] = config
    ctx.obj['palette'] = Palette(enabled=not no_color)


@cli.command('ports')
@click.pass_context
def ports_cmd(ctx):
    """List MIDI input ports."""
    pal: Palette = ctx.obj['palette']
    names = mido.get_input_names()
    pal.header("MIDI Input Ports")
    if not names:
        pal.warning("No MIDI input ports found")
        return
    for i, name in enumerate(names, 1):
        click.echo(f"  {i}. {name}")


@cli.command('run')
@click.option('--port', '-p', default=None, help='MIDI input port name (substring match)')
@click.option('--channel', '-c', type=click.IntRange(0, 15), default=None,
              help='Only route this MIDI channel (0-15)')
@click.option('--catalog', 'catalog_path', type=click.Path(), default=None,
              help='Catalog JSON file or YAML maps directory')
@click.option('--automap/--no-automap', default=None,
              help='Apply the canonical mapping for device 1 on start')
@click.pass_context
def run_cmd(ctx, port: Optional[str], channel: Optional[int],
            catalog_path: Optional[str], automap: Optional[bool]):
    """Route CC messages from a MIDI input to Ableton via AbletonOSC."""
    config: RouterConfig = ctx.obj['config']
    pal: Palette = ctx.obj['palette']

    catalog = _load_catalog_or_exit(pal, catalog_path or config.get('catalog', 'path'))
    if channel is None and config.get('midi', 'channel') is not None:
        channel = int(config.get('midi', 'channel'))
    if automap is None:
        automap = bool(config.get('router', 'automap_on_start', default=False))

    device = RouterDevice(
        session_factory=lambda: OscLiveSession.from_config(config.osc),
        catalog=catalog,
        status=pal.status,
        build_status=pal.status,
        debug_mode=bool(config.get('router', 'debug_mode', default=True)),
        default_device_index=int(config.get('router', 'default_device_index', default=1)),
        max_listed_parameters=int(config.get('router', 'max_listed_parameters', default=10)),
    )

    port_name = _resolve_input_port(pal, port or config.get('midi', 'input_port'))

    pal.header(f"CC Router v{__version__}")
    device.on_load()
    if not device.on_live_api_ready():
        pal.error("Could not connect to Ableton. Is AbletonOSC enabled?")
        raise SystemExit(1)

    if automap:
        device.auto_apply_canonical_mapping()

    try:
        with mido.open_input(port_name) as inport:
            pal.success(f"Listening on {port_name}" +
                        (f" (channel {channel})" if channel is not None else ""))
            click.echo("Press Ctrl+C to stop")
            for msg in inport:
                if msg.type != 'control_change':
                    continue
                if channel is not None and msg.channel != channel:
                    continue
                cc = CCMessage.from_mido(msg)
                device.on_cc_message(cc.cc_number, cc.value, cc.channel)
    except KeyboardInterrupt:
        click.echo("\nStopping...")
    except OSError as e:
        pal.error(f"MIDI input error: {e}")
        raise SystemExit(1)
    finally:
        device.on_unload()


@cli.command('convert-maps')
@click.argument('maps_dir', type=click.Path(exists=True, file_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False), default='catalog.json',
              help='Output catalog JSON (default: catalog.json)')
@click.pass_context
def convert_maps_cmd(ctx, maps_dir: str, output: str):
    """Convert canonical YAML MIDI maps to a catalog JSON file."""
    pal: Palette = ctx.obj['palette']
    pal.header("Converting canonical MIDI maps")

    try:
        catalog = CanonicalCatalog.load_yaml_directory(Path(maps_dir))
    except CatalogError as e:
        pal.error(str(e))
        raise SystemExit(1)

    for key, entry in zip(catalog.keys(), catalog.entries()):
        click.echo(f"  {key} -> {entry.plugin_name} ({len(entry.mappings)} mappings)")

    path = catalog.write_json(Path(output))
    pal.success(f"Converted {len(catalog)} plugin maps")
    click.echo(f"Generated: {path}")


@cli.command('catalog')
@click.option('--catalog', 'catalog_path', type=click.Path(), default=None,
              help='Catalog JSON file or YAML maps directory')
@click.pass_context
def catalog_cmd(ctx, catalog_path: Optional[str]):
    """List canonical plugin mappings."""
    config: RouterConfig = ctx.obj['config']
    pal: Palette = ctx.obj['palette']

    catalog = _load_catalog_or_exit(pal, catalog_path or config.get('catalog', 'path'))
    pal.header(f"Canonical Mappings ({len(catalog)})")
    if not len(catalog):
        pal.warning("Catalog is empty")
        return
    for key, entry in zip(catalog.keys(), catalog.entries()):
        maker = f" [{entry.plugin_manufacturer}]" if entry.plugin_manufacturer else ""
        click.echo(f"  {key}: {entry.plugin_name}{maker} - {len(entry.mappings)} mappings")


@cli.command('test-cc')
@click.argument('cc_number', type=click.IntRange(0, 127))
@click.argument('value', type=click.IntRange(0, 127))
@click.option('--session', 'session_path', type=click.Path(exists=True, dir_okay=False),
              required=True, help='YAML description of tracks/devices/parameters')
@click.option('--mapping', '-m', 'mapping_specs', multiple=True,
              help='Extra mapping cc:device:param[:curve] (repeatable)')
@click.option('--catalog', 'catalog_path', type=click.Path(), default=None,
              help='Catalog JSON file or YAML maps directory')
@click.option('--automap', is_flag=True, help='Apply canonical mapping before routing')
@click.pass_context
def test_cc_cmd(ctx, cc_number: int, value: int, session_path: str,
                mapping_specs: Tuple[str, ...], catalog_path: Optional[str], automap: bool):
    """Route one CC message against a static session file."""
    config: RouterConfig = ctx.obj['config']
    pal: Palette = ctx.obj['palette']

    mappings = [parse_mapping_spec(spec) for spec in mapping_specs]

    with open(session_path, 'r', encoding='utf-8') as f:
        session = StaticLiveSession.from_dict(yaml.safe_load(f) or {})

    statuses: List[str] = []
    device = RouterDevice(
        session_factory=lambda: session,
        catalog=_load_catalog_or_exit(pal, catalog_path or config.get('catalog', 'path')),
        status=statuses.append,
        debug_mode=bool(config.get('router', 'debug_mode', default=True)),
    )
    device.on_live_api_ready()

    if automap:
        device.auto_apply_canonical_mapping()
    for cc, dev, param, curve in mappings:
        device.set_mapping(cc, dev, param, curve=curve)

    result = device.on_cc_message(cc_number, value)
    pal.status(result.status)

    if result.success:
        pal.success(f"{result.track_name} / {result.device_name} / "
                    f"{result.parameter_name} = {result.value:.3f}")
    else:
        raise SystemExit(1)


@cli.command('config')
@click.pass_context
def config_cmd(ctx):
    """Show the effective configuration."""
    config: RouterConfig = ctx.obj['config']
    pal: Palette = ctx.obj['palette']
    source = config.path if config.path and config.path.exists() else "defaults"
    pal.header(f"Configuration ({source})")
    click.echo(yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False))


def main() -> None:
    cli(obj={})


if __name__ == '__main__':
    sys.exit(main())
