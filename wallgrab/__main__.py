"""
Entry point: runs the CLI and turns uncaught errors into readable panels and
exit codes.
"""

import asyncio
import logging
import os
import sys

import typer
from rich.console import Console

from wallgrab.cli.app import app
from wallgrab.cli.formatters import format_error_with_suggestions
from wallgrab.exceptions import WallgrabError

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def main() -> None:
    if os.name == "nt":
        # Aerial names are localized; the Windows console default is not UTF-8
        for stream in (sys.stdout, sys.stderr):
            try:
                stream.reconfigure(encoding="utf-8")
            except (TypeError, AttributeError):
                pass

    log = logging.getLogger("wallgrab")
    stderr = Console(stderr=True)

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        stderr.print("\n[yellow]Interrupted.[/yellow] Run the command again to resume.")
        sys.exit(EXIT_INTERRUPTED)
    except WallgrabError as e:
        stderr.print(format_error_with_suggestions(e))
        log.debug("Traceback:", exc_info=True)
        sys.exit(EXIT_FAILURE)
    except Exception as e:
        stderr.print(format_error_with_suggestions(e, {"type": "unexpected"}))
        log.debug("Traceback:", exc_info=True)
        sys.exit(EXIT_FAILURE)


if __name__ == "__main__":
    main()
