"""
Entry point for `ytdl-api` and `python -m ytdl_api`.

Runs the Typer app and turns application errors into a rich panel with
suggestions and a non-zero exit status.
"""

import logging
import sys

import typer
from rich.console import Console

from ytdl_api.cli.app import app
from ytdl_api.cli.formatters import format_error_with_suggestions
from ytdl_api.exceptions import YtdlApiError

log = logging.getLogger("ytdl_api")


def main() -> None:
    console = Console(stderr=True)
    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped.[/yellow]")
    except YtdlApiError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
