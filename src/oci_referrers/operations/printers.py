"""
Human-readable output formatting.

Centralizes all CLI output formatting so CLI commands stay thin and focused.
"""
from __future__ import annotations

from typing import Any, Dict

import typer
from rich.console import Console
from rich.table import Table

from ..storage.reference import Reference

_console = Console()


def print_artifact_type(value: str) -> None:
    typer.echo(value)


def print_payload(payload: bytes) -> None:
    typer.echo(payload.decode("utf-8"))


def print_publish_summary(target: Reference) -> None:
    """
    Print the outcome of a signature publish.

    Args:
        target: Digest reference the referrer manifest was pushed to
    """
    typer.echo(f"Published: {target}")
    typer.echo(f"Digest: {target.digest}")


def print_referrers(subject: Reference, index: Dict[str, Any], artifact_type: str,
                    verbose: bool = False) -> None:
    """
    Print referrers of a subject as a table.

    Args:
        subject: Subject digest reference
        index: OCI image index returned by the registry
        artifact_type: artifactType the listing was filtered on
        verbose: Also show each referrer's manifest media type
    """
    manifests = index.get("manifests") or []
    typer.echo(f"{len(manifests)} referrer(s) of {subject} with artifactType {artifact_type}")
    if not manifests:
        return

    table = Table(title="Referrers")
    table.add_column("Digest", style="cyan", overflow="fold")
    table.add_column("Artifact type", style="yellow", overflow="fold")
    table.add_column("Size", justify="right")
    if verbose:
        table.add_column("Media type", style="dim", overflow="fold")

    for entry in manifests:
        row = [
            entry.get("digest", "?"),
            entry.get("artifactType", "-"),
            _format_bytes(entry.get("size", 0)),
        ]
        if verbose:
            row.append(entry.get("mediaType", "-"))
        table.add_row(*row)

    _console.print(table)


def _format_bytes(size_bytes: int) -> str:
    """
    Format byte count as human-readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted string (e.g., "1.5 MB", "42 KB")
    """
    if size_bytes == 0:
        return "0 B"
    elif size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
