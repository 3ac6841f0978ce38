"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ytdl_api.media.info import VideoInfo
from ytdl_api.models.config import ServerConfig
from ytdl_api.utils.formatting import format_duration


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the values in your configuration file.",
            "• Run `ytdl-api init --force` to write a fresh default config.",
            "• Environment variables use the YTDL_API_ prefix, e.g. YTDL_API_PORT.",
        ],
        "RetrieverNotFoundError": [
            "• Install yt-dlp, e.g. `pip install yt-dlp`.",
            "• Or point `retriever_command` at the yt-dlp executable.",
        ],
        "RetrieverError": [
            "• The video may be private, region-locked or removed.",
            "• YouTube may be throttling this address; try again later.",
            "• Update yt-dlp to the latest release.",
        ],
        "OSError": [
            "• The port may already be in use. Try a different --port.",
            "• Check that the downloads directory is writable.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the configuration file's settings."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if isinstance(value, list):
            value = " | ".join(value) if key == "user_agents" else " ".join(value)
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            content.strip() or "[dim]No settings; defaults apply.[/dim]",
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_settings_table(config: ServerConfig):
    """Displays a summary of the effective settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Listen:", f"{config.host}:{config.port}")
    table.add_row("Environment:", f"[green]{config.environment}[/green]")
    table.add_row("Downloads Dir:", f"[dim]{config.downloads_dir}[/dim]")
    table.add_row(
        "Grace Periods:",
        f"{format_duration(config.completed_grace_seconds)} completed, "
        f"{format_duration(config.failed_grace_seconds)} failed",
    )
    table.add_row(
        "Rate Limit:",
        f"{config.max_requests} requests / {config.window_seconds:.0f}s",
    )
    table.add_row("Max Concurrent:", f"{config.max_concurrent_downloads} per client")
    table.add_row(
        "Retries:", f"{config.max_retries} (base delay {config.retry_delay:g}s)"
    )
    table.add_row("Retriever:", " ".join(config.retriever_command))
    table.add_row(
        "Verify Artifacts:", "✓ Enabled" if config.verify_artifacts else "✗ Disabled"
    )

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_video_info(video: VideoInfo):
    """Displays a video's metadata and the qualities it can be fetched in."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Title:", video.title or "Unknown")
    table.add_row("Channel:", video.channel or "Unknown")
    table.add_row("Duration:", video.duration)
    table.add_row("Video:", ", ".join(video.video_qualities) or "[dim]none[/dim]")
    table.add_row("Audio:", ", ".join(video.audio_qualities) or "[dim]none[/dim]")

    console.print(
        Panel(
            table,
            title=f"[bold]{video.id or 'Video'}[/bold]",
            border_style="cyan",
            expand=False,
        )
    )
