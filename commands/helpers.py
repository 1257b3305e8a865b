"""Shared helpers for the command modules."""

import asyncio

import click

from core.config import BridgeConfig, get_auth_credentials
from core.gateway import BridgeGateway


def get_gateway(require_key: bool = True) -> BridgeGateway | None:
    """Build a gateway from the configured credentials.

    Prints guidance and returns None if no credentials are available.
    """
    credentials = get_auth_credentials()
    if not credentials:
        click.echo("Error: Could not obtain bridge credentials.", err=True)
        click.echo("Set HUE_BRIDGE_IP and HUE_APPLICATION_KEY, or run 'register BRIDGE_IP' first.")
        return None

    config = BridgeConfig.from_credentials(credentials)
    if require_key and not config.application_key:
        click.echo("Error: No application key configured.", err=True)
        return None

    return BridgeGateway(config)


def run_request(gateway: BridgeGateway, coro):
    """Run one gateway request to completion, including retries."""
    async def main():
        try:
            await coro
            await gateway.join()
        finally:
            gateway.close()

    asyncio.run(main())


def report_connection_problem(gateway: BridgeGateway, outcome: dict):
    """Record a connection problem in outcome['error']."""
    gateway.events.subscribe('connection-problem', lambda: outcome.update(error=True))


def echo_outcome(outcome: dict, success: str, failure: str):
    if outcome.get('ok'):
        click.secho(f"✓ {success}", fg='green')
    elif outcome.get('error'):
        click.secho(f"✗ {failure}", fg='red')
    else:
        click.secho(f"✗ {failure} (no response from bridge)", fg='red')
