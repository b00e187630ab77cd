"""CLI: ndm send"""

from typing import Optional

import click

from nostr_dm.cli.common import Duration, console, fail, setup_logging
from nostr_dm.errors import NostrDMError, PublishError
from nostr_dm.models.options import DEFAULT_TIMEOUT_S, SendOptions, parse_relay_list
from nostr_dm.models.outcome import RelayOutcome
from nostr_dm.models.result import SendResult


def _make_client(relays, timeout):
    from nostr_dm.cli.main import _make_client
    return _make_client(relays, timeout)


def _run(coro):
    from nostr_dm.cli.main import _run
    return _run(coro)


def _print_outcomes(outcomes: list[RelayOutcome]) -> None:
    for o in outcomes:
        if o.succeeded:
            console.print(f"  [green]✓[/green] {o.url}", highlight=False)
        else:
            console.print(f"  [yellow]✗[/yellow] {o.url}: {o.error}", highlight=False)


@click.command("send")
@click.option("-k", "--key", envvar="NDM_KEY", required=True, help="Your private key (nsec or hex).")
@click.option("-r", "--recipient", required=True, help="Recipient public key (npub, nsec or hex).")
@click.option("-m", "--message", required=True, help="The message to send.")
@click.option("--relays", "--relay", "relays", envvar="NDM_RELAYS", default=None,
              help="Comma-separated relay URLs (default: well-known relays).")
@click.option("-t", "--timeout", type=Duration(), default=DEFAULT_TIMEOUT_S, show_default=True,
              help="How long to wait for publish confirmation.")
@click.option("-v", "--verbose", is_flag=True, help="Print verbose output.")
@click.option("-j", "--json", "json_output", is_flag=True, help="Output result as JSON.")
def send_cmd(key: str, recipient: str, message: str, relays: Optional[str], timeout: float,
             verbose: bool, json_output: bool):
    """Send an encrypted direct message."""
    if not message:
        raise click.UsageError("missing required flag: -m/--message (the message to send)")
    setup_logging(verbose)
    relay_list = parse_relay_list(relays) if relays is not None else None

    async def _send():
        client = _make_client(relay_list, timeout)
        return await client.send(SendOptions(key=key, recipient=recipient, message=message))

    try:
        result = _run(_send())
    except PublishError as e:
        if json_output:
            click.echo(SendResult.from_error(e).model_dump_json(indent=2))
        else:
            _print_outcomes(e.outcomes)
        fail(e)
    except NostrDMError as e:
        fail(e)

    if json_output:
        click.echo(result.model_dump_json(indent=2))
        return
    console.print("[green]✓ DM sent successfully[/green]")
    console.print(f"  Message ID: {result.message_id}", highlight=False)
    console.print(f"  To: {result.encrypted_to}", highlight=False)
    console.print(f"  Relays: {result.succeeded}/{result.attempted}", highlight=False)
    if result.succeeded < result.attempted:
        _print_outcomes(result.relays)
