"""CLI: ndm read"""

from datetime import datetime, timezone
from typing import Optional

import click
from rich.markup import escape
from rich.table import Table

from nostr_dm.cli.common import EXIT_PUBLISH, Duration, console, err_console, fail, setup_logging
from nostr_dm.errors import NostrDMError
from nostr_dm.models.options import DEFAULT_READ_LIMIT, DEFAULT_TIMEOUT_S, ReadOptions, parse_relay_list


def _make_client(relays, timeout):
    from nostr_dm.cli.main import _make_client
    return _make_client(relays, timeout)


def _run(coro):
    from nostr_dm.cli.main import _run
    return _run(coro)


@click.command("read")
@click.option("-k", "--key", envvar="NDM_KEY", required=True, help="Your private key (nsec or hex).")
@click.option("-n", "--limit", type=click.IntRange(min=1), default=DEFAULT_READ_LIMIT, show_default=True,
              help="Maximum number of messages.")
@click.option("--relays", "--relay", "relays", envvar="NDM_RELAYS", default=None,
              help="Comma-separated relay URLs (default: well-known relays).")
@click.option("-t", "--timeout", type=Duration(), default=DEFAULT_TIMEOUT_S, show_default=True,
              help="How long to wait for relays.")
@click.option("-v", "--verbose", is_flag=True, help="Print verbose output.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output result as JSON.")
def read_cmd(key: str, limit: int, relays: Optional[str], timeout: float, verbose: bool, json_output: bool):
    """Read encrypted direct messages sent to you."""
    setup_logging(verbose)
    relay_list = parse_relay_list(relays) if relays is not None else None

    async def _read():
        client = _make_client(relay_list, timeout)
        return await client.read(ReadOptions(key=key, limit=limit))

    try:
        result = _run(_read())
    except NostrDMError as e:
        fail(e)

    if json_output:
        click.echo(result.model_dump_json(indent=2))
    elif result.messages:
        table = Table(title=f"Messages ({len(result.messages)})")
        table.add_column("Time")
        table.add_column("From", overflow="fold")
        table.add_column("Message", overflow="fold")
        for m in result.messages:
            sent = datetime.fromtimestamp(m.created_at, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
            text = escape(m.content or "") if m.decrypted else f"[red]<decryption failed>[/red] {escape(m.ciphertext_preview or '')}..."
            table.add_row(sent, m.sender, text)
        console.print(table)
    elif result.reachable:
        console.print("[dim]No messages found.[/dim]")

    if not result.reachable:
        err_console.print("[red]Error:[/red] could not reach any relay")
        raise SystemExit(EXIT_PUBLISH)
