"""Payload CLI commands.

This module provides commands for working with persisted payload files:
- inspect: Validate a payload and summarise its encoded nodes
- convert: Decode with one codec and re-encode with another
"""

from __future__ import annotations

import json
import sys
from collections import Counter
from pathlib import Path
from typing import Any

import click

from cache_codec.codecs import CODECS, get_codec
from cache_codec.codecs.flat import CIRCULAR_MARKER
from cache_codec.config import CodecOptions
from cache_codec.errors import CodecError
from cache_codec.kinds import (
    RESERVED_TAGS,
    TAG_DIAGNOSTIC,
    TAG_MAP,
    TAG_SET,
    TAG_TEXT_RANGE_COLLECTION,
)

CODEC_CHOICE = click.Choice(sorted(CODECS))


def count_structural_nodes(tree: Any, counts: Counter) -> None:
    """Count encoded node kinds in a structural tree.

    Tagged nodes are counted by tag name; untagged composites as
    "sequence" or "record".
    """
    if isinstance(tree, list):
        counts["sequence"] += 1
        for item in tree:
            count_structural_nodes(item, counts)
        return
    if not isinstance(tree, dict):
        counts["null" if tree is None else "scalar"] += 1
        return

    tag = next(iter(tree)) if len(tree) == 1 else None
    if tag not in RESERVED_TAGS:
        counts["record"] += 1
        for item in tree.values():
            count_structural_nodes(item, counts)
        return

    counts[tag] += 1
    payload = tree[tag]
    if tag == TAG_MAP:
        for key, item in payload:
            count_structural_nodes(key, counts)
            count_structural_nodes(item, counts)
    elif tag == TAG_SET:
        for item in payload:
            count_structural_nodes(item, counts)
    elif tag == TAG_TEXT_RANGE_COLLECTION:
        for item in payload["items"]:
            count_structural_nodes(item, counts)
    elif tag == TAG_DIAGNOSTIC:
        count_structural_nodes(payload.get("range"), counts)


def count_flat_nodes(tree: Any, counts: Counter) -> None:
    """Count ``_type`` objects and repeat markers in a flat tree."""
    if isinstance(tree, list):
        counts["sequence"] += 1
        for item in tree:
            count_flat_nodes(item, counts)
    elif isinstance(tree, dict):
        type_name = tree.get("_type")
        counts[type_name if type_name else "record"] += 1
        for item in tree.values():
            count_flat_nodes(item, counts)
    elif tree == CIRCULAR_MARKER:
        counts["circular_marker"] += 1
    else:
        counts["null" if tree is None else "scalar"] += 1


@click.command("inspect")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--codec",
    "-c",
    "codec_name",
    type=CODEC_CHOICE,
    default="structural",
    help="Codec the payload was written with.",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output result as JSON.",
)
def inspect_payload(path: str, codec_name: str, output_json: bool) -> None:
    """Validate a payload file and summarise its encoded nodes.

    Exits with status 1 if the payload cannot be decoded.

    Examples:

        cache-codec inspect ./cache/module.json

        cache-codec inspect ./cache/meta.json --codec flat --json
    """
    codec = get_codec(codec_name)
    text = Path(path).read_text(encoding="utf-8")

    try:
        codec.decode(text)
    except CodecError as e:
        click.echo(f"Error decoding payload: {e}", err=True)
        sys.exit(1)

    raw = json.loads(text)
    counts: Counter = Counter()
    if codec.supports_cycles:
        version = raw["version"]
        count_structural_nodes(raw.get("data"), counts)
    else:
        version = None
        count_flat_nodes(raw, counts)

    if output_json:
        output = {
            "path": path,
            "codec": codec_name,
            "version": version,
            "nodes": dict(sorted(counts.items())),
        }
        click.echo(json.dumps(output, indent=2))
        return

    click.echo(f"\nPayload: {path}")
    click.echo("=" * 60)
    click.echo(f"Codec:   {codec_name}")
    if version is not None:
        click.echo(f"Version: {version}")
    click.echo(f"Nodes:   {sum(counts.values()):,}")
    click.echo()
    for name, count in sorted(counts.items()):
        click.echo(f"  {name:<28}  {count:>8,}")


@click.command("convert")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.argument("output", type=click.Path(dir_okay=False))
@click.option(
    "--from",
    "source",
    type=CODEC_CHOICE,
    default="structural",
    help="Codec the input was written with.",
)
@click.option(
    "--to",
    "target",
    type=CODEC_CHOICE,
    default="flat",
    help="Codec to write the output with.",
)
@click.option(
    "--compact",
    is_flag=True,
    help="Write JSON without indentation.",
)
def convert_payload(
    path: str, output: str, source: str, target: str, compact: bool
) -> None:
    """Re-encode a payload file with another codec.

    Converting to the flat codec replaces shared and cyclic values with
    "[Circular]" markers.

    Examples:

        cache-codec convert module.json module.flat.json

        cache-codec convert meta.json meta.json --from flat --to structural
    """
    options = CodecOptions(indent=None if compact else 2)
    decoder = get_codec(source)
    encoder = get_codec(target, options)

    try:
        data = decoder.import_(Path(path))
    except CodecError as e:
        click.echo(f"Error decoding payload: {e}", err=True)
        sys.exit(1)

    encoder.export(data, Path(output))
    click.echo(f"Converted {path} ({source}) -> {output} ({target})", err=True)
