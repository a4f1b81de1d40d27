"""CLI entry point for aumai-integrity."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from aumai_integrity.chunklist import (
    HASH_BUFFER_SIZE,
    ChunklistReader,
    ChunklistVerifier,
)
from aumai_integrity.keys import KeyManager
from aumai_integrity.models import HashType
from aumai_integrity.signature import SignatureMethod
from aumai_integrity.trustcache import TrustCacheReader

CHUNKLIST_SUFFIX = ".chunklist"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _default_chunklist_path(target: Path) -> Path:
    return target.with_suffix(CHUNKLIST_SUFFIX)


def _hash_type_name(code: int) -> str:
    try:
        return HashType(code).name
    except ValueError:
        return f"unknown({code})"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="aumai-integrity")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """AumAI Integrity — chunklist verification and trust cache inspection."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command("verify")
@click.argument("target", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--chunklist",
    "chunklist_path",
    default=None,
    metavar="PATH",
    help="Chunklist to verify against (default: TARGET with a .chunklist suffix).",
)
@click.option(
    "--keys",
    required=True,
    envvar="AUMAI_INTEGRITY_KEYS",
    show_envvar=True,
    metavar="PATH",
    help="PEM file of trusted RSA public keys.",
)
@click.option(
    "--buffer-size",
    default=HASH_BUFFER_SIZE,
    show_default=True,
    envvar="AUMAI_INTEGRITY_BUFFER_SIZE",
    type=click.IntRange(min=1),
    help="Read size used while hashing chunks.",
)
def verify_command(
    target: str, chunklist_path: str | None, keys: str, buffer_size: int
) -> None:
    """Verify TARGET against its signed chunklist."""
    target_path = Path(target)
    if target_path.suffix == CHUNKLIST_SUFFIX:
        click.echo(
            "Error: specify the file to verify, not the chunklist", err=True
        )
        sys.exit(1)

    manifest_path = (
        Path(chunklist_path) if chunklist_path else _default_chunklist_path(target_path)
    )

    try:
        manifest = ChunklistReader().read_file(str(manifest_path))
        anchors = KeyManager().load_trust_anchors(keys)
        verifier = ChunklistVerifier(anchors, buffer_size=buffer_size)
        click.echo(f"Verifying {manifest.chunk_count} chunks")
        result = verifier.verify_file(manifest, str(target_path))
    except Exception as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if result.valid:
        click.echo("File verification successful")
        return

    for failure in result.failures:
        click.echo(f"  [FAIL] {failure.message}")
    click.echo(f"{len(result.failures)} verification failure(s)", err=True)
    sys.exit(2)


@main.command("inspect")
@click.argument("chunklist", type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", is_flag=True, help="Emit raw JSON.")
def inspect_command(chunklist: str, json_output: bool) -> None:
    """Display the header and chunk table of a CHUNKLIST."""
    try:
        manifest = ChunklistReader().read_file(chunklist)
    except Exception as exc:
        click.echo(f"Error loading chunklist: {exc}", err=True)
        sys.exit(1)

    if json_output:
        click.echo(manifest.model_dump_json(indent=2))
        return

    click.echo(f"Magic            : {manifest.magic:08X}")
    click.echo(f"Header Size      : {manifest.header_size}")
    click.echo(f"File Version     : {manifest.file_version}")
    click.echo(f"Chunk Method     : {manifest.chunk_method}")
    click.echo(
        "Signature Method : "
        f"{SignatureMethod(manifest.signature_method).name} "
        f"({manifest.signature_method})"
    )
    click.echo(f"Chunk Table      : offset {manifest.chunk_table_offset}")
    click.echo(f"Signature        : offset {manifest.signature_offset}")
    click.echo(f"Chunks           : {manifest.chunk_count}")
    click.echo("\nChunks in manifest:")
    for index, chunk in enumerate(manifest.chunks):
        size = "remainder" if chunk.is_remainder else f"{chunk.size:,} bytes"
        click.echo(f"  [{index}] {size}  sha256:{chunk.digest.hex()[:16]}...")


@main.command("trustcache")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", is_flag=True, help="Emit raw JSON.")
def trustcache_command(path: str, json_output: bool) -> None:
    """Display the entries of a trust cache file."""
    try:
        cache = TrustCacheReader().read_file(path)
    except Exception as exc:
        click.echo(f"Error loading trust cache: {exc}", err=True)
        sys.exit(1)

    if json_output:
        click.echo(cache.model_dump_json(indent=2))
        return

    click.echo(f"Version : {cache.version}")
    click.echo(f"UUID    : {cache.uuid}")
    click.echo(f"Entries : {cache.count}")
    for entry in cache.entries:
        click.echo(
            f"  {entry.digest.hex()}  {_hash_type_name(entry.hash_type)}  "
            f"flags=0x{entry.flags:02x}"
        )


@main.command("export-key")
@click.argument("table", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--stride",
    default=256,
    show_default=True,
    type=click.IntRange(min=256),
    help="Bytes per key entry; leading bytes beyond the modulus are skipped.",
)
@click.option(
    "--output",
    default=None,
    metavar="PATH",
    help="Write PEM keys to PATH instead of stdout.",
)
def export_key_command(table: str, stride: int, output: str | None) -> None:
    """Convert a TABLE of raw RSA-2048 moduli into PEM trust anchors."""
    km = KeyManager()
    try:
        anchors = km.anchors_from_table(Path(table).read_bytes(), stride=stride)
    except Exception as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    pem = b"".join(km.export_pem(key) for key in anchors)
    if output is None:
        click.echo(pem.decode("ascii"), nl=False)
        return

    Path(output).write_bytes(pem)
    click.echo(f"{len(anchors)} key(s) written to: {output}")


if __name__ == "__main__":
    main()
