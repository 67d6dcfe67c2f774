"""
oci-referrers CLI

Implements 4 CLI verbs with Operations facade integration:
- artifact-type: Print the artifactType for an attachment kind
- payload: Print the simple-signing payload to sign for a digest reference
- attach: Publish a signature as an OCI 1.1 referrer of a digest reference
- referrers: List referrers of a digest reference
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .cli_context import CLIContext
from .operations import Operations, OpsConfig, run_and_exit
from .operations.printers import (
    print_artifact_type,
    print_payload,
    print_publish_summary,
    print_referrers,
)
from .settings import DEFAULT_OPTIONS
from .storage.oci_media_types import artifact_type as _artifact_type
from .storage.reference import parse_digest_reference

app = typer.Typer(name="oci-referrers", help="Publish and list signature referrers in OCI registries")


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _make_operations(username: Optional[str], password: Optional[str],
                     insecure: bool, verbose: bool) -> Operations:
    ctx = CLIContext.from_env(username=username, password=password, insecure=insecure)
    return Operations(OpsConfig(verbose=verbose), ctx.options, registry=ctx.registry)


@app.command("artifact-type")
def artifact_type(
    kind: str = typer.Argument(..., help="Attachment kind (sig, sbom, att, ...)")
) -> None:
    """Print the OCI 1.1 artifactType for an attachment kind."""
    ops = Operations(OpsConfig(), DEFAULT_OPTIONS)
    print_artifact_type(run_and_exit(lambda: ops.artifact_type(kind)))


@app.command()
def payload(
    subject: str = typer.Argument(..., help="Digest reference (registry/repo@sha256:...)")
) -> None:
    """Print the simple-signing payload to sign for a digest reference."""
    ops = Operations(OpsConfig(), DEFAULT_OPTIONS)
    print_payload(run_and_exit(lambda: ops.payload(subject)))


@app.command()
def attach(
    subject: str = typer.Argument(..., help="Digest reference of the signed artifact"),
    payload_file: Path = typer.Option(..., "--payload", exists=True, dir_okay=False, help="Signed payload file"),
    signature_file: Path = typer.Option(..., "--signature", exists=True, dir_okay=False, help="Raw signature file"),
    certificate_file: Optional[Path] = typer.Option(None, "--certificate", exists=True, dir_okay=False, help="PEM signing certificate"),
    chain_file: Optional[Path] = typer.Option(None, "--chain", exists=True, dir_okay=False, help="PEM certificate chain"),
    username: Optional[str] = typer.Option(None, "--username", help="Registry username"),
    password: Optional[str] = typer.Option(None, "--password", help="Registry password"),
    insecure: bool = typer.Option(False, "--insecure", help="Use plain HTTP for the registry"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging")
) -> None:
    """Publish a signature as an OCI 1.1 referrer of SUBJECT."""
    _configure_logging(verbose)

    def _attach():
        ops = _make_operations(username, password, insecure, verbose)
        return ops.attach(
            subject, payload_file, signature_file,
            certificate_path=certificate_file, chain_path=chain_file,
        )

    print_publish_summary(run_and_exit(_attach))


@app.command()
def referrers(
    subject: str = typer.Argument(..., help="Digest reference of the artifact"),
    kind: str = typer.Option("sig", "--kind", help="Attachment kind to list"),
    artifact_type_override: Optional[str] = typer.Option(None, "--artifact-type", help="Explicit artifactType (overrides --kind)"),
    username: Optional[str] = typer.Option(None, "--username", help="Registry username"),
    password: Optional[str] = typer.Option(None, "--password", help="Registry password"),
    insecure: bool = typer.Option(False, "--insecure", help="Use plain HTTP for the registry"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging")
) -> None:
    """List referrers of SUBJECT with the given artifact type."""
    _configure_logging(verbose)
    wanted = artifact_type_override or _artifact_type(kind)

    def _referrers():
        ref = parse_digest_reference(subject)
        ops = _make_operations(username, password, insecure, verbose)
        return ref, ops, ops.referrers(subject, wanted)

    ref, ops, index = run_and_exit(_referrers)
    print_referrers(ref, index, wanted, verbose=ops.cfg.verbose)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
