"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import os
from pathlib import Path

import typer
from aiohttp import web
from rich.console import Console
from rich.logging import RichHandler

from ytdl_api import __version__
from ytdl_api.api import create_app
from ytdl_api.exceptions import YtdlApiError
from ytdl_api.media import ProcessRunner
from ytdl_api.models.config import ServerConfig
from ytdl_api.storage.config_manager import ConfigManager
from ytdl_api.utils.path import is_youtube_url, resolve_locator

from .formatters import print_config, print_settings_table, print_video_info

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            markup=False,
        )
    ],
)
log = logging.getLogger("ytdl_api")

app = typer.Typer(
    name="ytdl-api",
    help=(
        "An HTTP service that turns YouTube videos into downloadable MP3/MP4"
        " files. Use 'ytdl-api <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "ytdl-api"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


def _config_manager(config_path: Path | None) -> ConfigManager:
    """An explicit --config must exist; the default location is optional."""
    if config_path is not None:
        return ConfigManager(config_path)
    return ConfigManager(CONFIG_FILE if CONFIG_FILE.is_file() else None)


def _set_log_level(config: ServerConfig, verbose: int) -> None:
    level = "DEBUG" if verbose >= 2 or config.is_development else "INFO"
    logging.getLogger("ytdl_api").setLevel(level)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the configuration file and exit."
    ),
):
    """YouTube download service"""
    if version:
        console.print(f"[bold]ytdl-api[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    ctx.obj = {"verbose": verbose}
    if verbose >= 2:
        logging.getLogger("ytdl_api").setLevel("DEBUG")

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]ytdl-api init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        config_manager = ConfigManager(CONFIG_FILE)
        config_manager.load_config()
        print_config(CONFIG_FILE, config_manager._get_config_as_dict())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def serve(
    ctx: typer.Context,
    host: str | None = typer.Option(None, "--host", help="Interface to bind."),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to listen on."),
    config_path: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", help="Path to an INI configuration file."
    ),
    downloads_dir: Path | None = typer.Option(  # noqa: B008
        None, "--downloads-dir", "-d", help="Directory for in-flight artifacts."
    ),
    environment: str | None = typer.Option(
        None, "--env", help="'development' or 'production'."
    ),
    log_dir: Path | None = typer.Option(  # noqa: B008
        None, "--log-dir", help="Write JSON event logs to this directory."
    ),
):
    """Run the HTTP download service."""
    config = _config_manager(config_path).load_config(
        {
            "host": host,
            "port": port,
            "downloads_dir": downloads_dir,
            "environment": environment,
            "log_dir": log_dir,
        }
    )
    _set_log_level(config, ctx.obj.get("verbose", 0) if ctx.obj else 0)

    console.print(
        f"[bold cyan]Starting ytdl-api on http://{config.host}:{config.port}"
        f"[/bold cyan] [dim]({config.environment})[/dim]"
    )
    web.run_app(
        create_app(config),
        host=config.host,
        port=config.port,
        print=None,
        access_log=None,
    )


@app.command()
def info(
    url: str = typer.Argument(..., help="A YouTube URL or bare video ID."),
    config_path: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", help="Path to an INI configuration file."
    ),
):
    """Show the title, duration and available qualities of a video."""
    locator = url if is_youtube_url(url) else resolve_locator(url)
    if locator is None:
        console.print(f"[red]✗ Not a YouTube URL or video ID: {url}[/red]")
        raise typer.Exit(code=1)

    config = _config_manager(config_path).load_config()
    runner = ProcessRunner.from_config(config)
    with console.status("[cyan]Fetching video information...[/cyan]"):
        video = asyncio.run(runner.fetch_info(locator))
    print_video_info(video)


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Write a configuration file with the default settings."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    ConfigManager(CONFIG_FILE).save_config(ServerConfig())
    console.print(
        f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]"
    )
    console.print("Ready to serve! Try: [cyan]ytdl-api serve[/cyan]")


@app.command()
def validate(
    config_path: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", help="Path to an INI configuration file."
    ),
):
    """Validate the configuration and show the effective settings."""
    try:
        config = _config_manager(config_path).load_config()
    except YtdlApiError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
    print_settings_table(config)
