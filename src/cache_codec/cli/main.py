"""Main CLI entry point."""

from __future__ import annotations

import click

from cache_codec import __version__


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Log codec activity to stderr.",
)
def cli(verbose: bool) -> None:
    """Cache Codec - inspect and convert persisted cache payloads.

    Use 'cache-codec inspect' to validate a payload and summarise it.
    Use 'cache-codec convert' to re-encode a payload with another codec.
    """
    if verbose:
        import logging

        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )


# Import and register commands
from cache_codec.cli.payload import (  # noqa: E402
    convert_payload,
    inspect_payload,
)

cli.add_command(inspect_payload)
cli.add_command(convert_payload)


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
