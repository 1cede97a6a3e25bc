import asyncio
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import colorlog
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape as rich_escape
from rich.panel import Panel
from rich.text import Text

from oauth_listener import (
    ANTIGRAVITY_REDIRECT_URI,
    BindConflictError,
    OAuthListenerError,
    RedirectTarget,
    parse_callback_params,
    start_oauth_listener,
)

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Wait for the Antigravity OAuth redirect on a local port and print the captured callback."
    )
    parser.add_argument(
        "--redirect-uri",
        type=str,
        default=ANTIGRAVITY_REDIRECT_URI,
        help="Redirect URI registered with the identity provider.",
    )
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=None,
        help="How long to wait for the redirect (defaults to ANTIGRAVITY_OAUTH_TIMEOUT_MS or 5 minutes).",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Show debug logs from the listener."
    )
    return parser


def setup_logging(verbose: bool = False):
    """Colored console logging, same format as the proxy's console handler."""
    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(message)s",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    root_logger.addHandler(console_handler)

    # Silence aiohttp's own request/server chatter
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


async def run(redirect_uri: str, timeout_ms: Optional[int] = None, out: Console = console) -> int:
    """Runs one listener to completion. Returns the process exit code."""
    target = RedirectTarget.from_uri(redirect_uri)
    try:
        listener = await start_oauth_listener(timeout_ms=timeout_ms, target=target)
    except BindConflictError as e:
        out.print(f"[bold red]{rich_escape(str(e))}[/bold red]")
        return 1
    except OSError as e:
        out.print(f"[bold red]Could not bind {target.host}:{target.port}: {rich_escape(str(e))}[/bold red]")
        return 1

    out.print(
        Panel(
            Text.from_markup(
                "Waiting for the identity provider to redirect the browser to:\n"
                f"[bold]{rich_escape(target.redirect_uri)}[/bold]\n"
                f"Timeout: {listener.timeout_ms // 1000}s"
            ),
            title="Antigravity OAuth Callback",
            style="bold blue",
        )
    )

    try:
        with out.status(
            "[bold green]Waiting for the OAuth redirect...[/bold green]", spinner="dots"
        ):
            url = await listener.wait_for_callback()
    except OAuthListenerError as e:
        out.print(f"[bold red]OAuth callback failed ({e.reason.value}):[/bold red] {rich_escape(str(e))}")
        return 1
    finally:
        await listener.close()

    params = parse_callback_params(url)
    out.print(f"[bold]Callback URL:[/bold] {rich_escape(str(url))}")
    if params.is_error:
        out.print(
            f"[bold yellow]Provider returned an error:[/bold yellow] {rich_escape(params.error)}"
            + (f" ({rich_escape(params.error_description)})" if params.error_description else "")
        )
    else:
        out.print(f"[bold]code:[/bold] {rich_escape(params.code or '-')}")
        out.print(f"[bold]state:[/bold] {rich_escape(params.state or '-')}")
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv(Path.cwd() / ".env")
    setup_logging(args.verbose)
    try:
        return asyncio.run(run(args.redirect_uri, args.timeout_ms))
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted.[/yellow]")
        return 130


if __name__ == "__main__":
    sys.exit(main())
