"""syslogsink CLI -- typer-based command interface.

Commands:
    syslogsink send KEY=VALUE...   Send one entry through a sink
    syslogsink facilities          List facility names and codes
    syslogsink show-config         Print the resolved sink configuration
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import typer

from syslogsink.cli._errors import handle_error
from syslogsink.config import DEFAULT_SECTION, SyslogSinkConfig
from syslogsink.errors import SyslogInitError, SyslogSinkError
from syslogsink.logging import LoggingConfig, setup_logging, shutdown_logging
from syslogsink.priority import FACILITIES, LEVEL_KEY

app = typer.Typer(
    name="syslogsink",
    help="Forward structured key/value log entries to a syslog receiver.",
    no_args_is_help=True,
)


@app.callback()
def startup(ctx: typer.Context) -> None:
    """Wire structured logging (SYSLOGSINK_LOG_* env vars) for every command."""
    try:
        setup_logging(LoggingConfig())
    except (SyslogSinkError, ValueError) as e:
        handle_error(f"Failed to set up logging: {e}")
    ctx.call_on_close(shutdown_logging)


def _resolve_config(
    config_path: Path | None,
    section: str,
    **overrides: str | None,
) -> SyslogSinkConfig:
    if config_path is not None and not config_path.exists():
        handle_error(f"Config file not found: {config_path}")
    try:
        cfg = SyslogSinkConfig.load(config_path, section=section)
    except ValueError as e:
        handle_error(str(e))
    given = {k: v for k, v in overrides.items() if v is not None}
    return replace(cfg, **given) if given else cfg


def _parse_pairs(pairs: list[str]) -> list[str]:
    keyvals: list[str] = []
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            handle_error(f"Expected KEY=VALUE, got {pair!r}")
        keyvals.extend((key, value))
    return keyvals


_CONFIG_OPTION = typer.Option(None, "--config", "-c", help="INI or YAML config file")
_SECTION_OPTION = typer.Option(DEFAULT_SECTION, "--section", help="Config section to read")
_NETWORK_OPTION = typer.Option(None, "--network", help="'' (local), udp, tcp, unix, unixgram")
_ADDRESS_OPTION = typer.Option(None, "--address", "-a", help="host:port or socket path")
_FACILITY_OPTION = typer.Option(None, "--facility", "-f", help="user, daemon, local0..local7")
_TAG_OPTION = typer.Option(None, "--tag", "-t", help="Message tag")
_FORMAT_OPTION = typer.Option(None, "--format", help="text, json or kv")


@app.command("send")
def send(
    pairs: list[str] = typer.Argument(..., help="Entry as KEY=VALUE pairs"),
    level: str = typer.Option(None, "--level", "-l", help="Prepend level=LEVEL to the entry"),
    config_path: Path = _CONFIG_OPTION,
    section: str = _SECTION_OPTION,
    network: str = _NETWORK_OPTION,
    address: str = _ADDRESS_OPTION,
    facility: str = _FACILITY_OPTION,
    tag: str = _TAG_OPTION,
    fmt: str = _FORMAT_OPTION,
) -> None:
    """Open a sink, send one entry, close it.

    Exits with status 1 if the receiver cannot be reached.

    Examples:
        syslogsink send level=warning msg="disk almost full"
        syslogsink send -l error --network udp -a logs.internal:514 msg=boom
    """
    from syslogsink.sink import new_sink

    cfg = _resolve_config(
        config_path,
        section,
        network=network,
        address=address,
        facility=facility,
        tag=tag,
        format=fmt,
    )
    keyvals = _parse_pairs(pairs)
    if level is not None:
        keyvals = [LEVEL_KEY, level, *keyvals]

    try:
        sink = new_sink(cfg)
    except SyslogInitError as e:
        handle_error(f"Failed to init syslog log handler: {e}")
    except ValueError as e:
        handle_error(str(e))

    error: str | None = None
    try:
        sink.log(*keyvals)
    except (OSError, ValueError, SyslogSinkError) as e:
        error = f"Failed to send entry: {e}"
    try:
        sink.close()
    except (OSError, SyslogSinkError) as e:
        error = error or f"Failed to close syslog connection: {e}"
    if error is not None:
        handle_error(error)

    typer.echo(f"Sent {len(keyvals) // 2} field(s) to syslog.")


@app.command("facilities")
def facilities() -> None:
    """List facility names and their codes."""
    for name, code in FACILITIES.items():
        typer.echo(f"{name:<8} {code:>4}  ({code >> 3})")


@app.command("show-config")
def show_config(
    config_path: Path = _CONFIG_OPTION,
    section: str = _SECTION_OPTION,
) -> None:
    """Print the resolved sink configuration (file + env)."""
    cfg = _resolve_config(config_path, section)
    for key, value in cfg.to_dict().items():
        typer.echo(f"{key} = {value!r}")


def main() -> None:
    """Entry point for the syslogsink CLI."""
    app()
