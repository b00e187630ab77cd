"""Shared CLI pieces: consoles, exit codes, option types, logging setup."""

import logging
import re
from typing import Any, Optional

import click
from rich.console import Console
from rich.logging import RichHandler

from nostr_dm.errors import NostrDMError

console = Console()
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_USAGE = 1
EXIT_ENCRYPT = 2
EXIT_SIGN = 3
EXIT_PUBLISH = 4

EXIT_CODES = {
    "config": EXIT_USAGE,
    "resolution": EXIT_USAGE,
    "crypto": EXIT_ENCRYPT,
    "signing": EXIT_SIGN,
    "publish": EXIT_PUBLISH,
    "relay": EXIT_PUBLISH,
}


class Duration(click.ParamType):
    """Seconds as a number, or with an ms/s/m/h suffix ("30", "60s", "1.5m")."""

    name = "duration"
    _pattern = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)?\s*$")
    _units = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

    def convert(self, value: Any, param: Optional[click.Parameter], ctx: Optional[click.Context]) -> float:
        if isinstance(value, (int, float)):
            seconds = float(value)
        else:
            match = self._pattern.match(str(value))
            if not match:
                self.fail(f"{value!r} is not a duration", param, ctx)
            seconds = float(match.group(1)) * self._units[match.group(2) or "s"]
        if seconds <= 0:
            self.fail("duration must be positive", param, ctx)
        return seconds


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def fail(error: NostrDMError) -> None:
    err_console.print(f"[red]Error ({error.stage}):[/red] {error}", highlight=False)
    raise SystemExit(EXIT_CODES.get(error.stage, EXIT_USAGE))
