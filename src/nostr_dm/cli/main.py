"""
nostr-dm CLI — `ndm` command.

Commands:
  ndm send -k KEY -r RECIPIENT -m MESSAGE   Send an encrypted DM
  ndm read -k KEY [-n LIMIT]                Read DMs sent to you

`send` is the default: `ndm -k KEY -r RECIPIENT -m MESSAGE` sends too.
With no arguments the help is printed.

Exit codes:
  0   Success
  1   Invalid arguments, unresolvable key or bad configuration
  2   Failed to encrypt message
  3   Failed to sign event
  4   Failed to publish to all relays / no relay reachable
"""

import asyncio
from typing import Any, Optional

try:
    import click
    import rich  # noqa: F401
except ImportError:
    raise SystemExit("CLI requires extras: pip install nostr-dm[cli]")

from nostr_dm import __version__
from nostr_dm.cli.common import EXIT_USAGE
from nostr_dm.client import AsyncNostrDM


def _make_client(relays: Optional[list[str]], timeout: float) -> AsyncNostrDM:
    return AsyncNostrDM(relays=relays, timeout=timeout)


def _run(coro):
    return asyncio.run(coro)


class _Group(click.Group):
    """Falls back to ``send`` when no subcommand is named."""

    default_command = "send"

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if not args:
            click.echo(ctx.get_help())
            ctx.exit(0)
        if args[0] not in self.commands and args[0] not in ctx.help_option_names and args[0] != "--version":
            args = [self.default_command, *args]
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as e:
            e.exit_code = EXIT_USAGE
            raise

    def invoke(self, ctx: click.Context) -> Any:
        # Bad or missing options share exit code 1 with other input errors.
        try:
            return super().invoke(ctx)
        except click.UsageError as e:
            e.exit_code = EXIT_USAGE
            raise


@click.group(cls=_Group, context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, prog_name="ndm")
def main():
    """ndm — send and read encrypted Nostr direct messages."""


# Register subcommands from separate modules
from nostr_dm.cli.send import send_cmd  # noqa: E402
from nostr_dm.cli.read import read_cmd  # noqa: E402

main.add_command(send_cmd)
main.add_command(read_cmd)


if __name__ == "__main__":
    main()
