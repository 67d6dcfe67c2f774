"""
Operations Facade - Application service layer.

Provides a clean interface between the CLI and the publisher API,
centralizing command orchestration and dependency injection while keeping
CLI commands thin and testable.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..publisher import list_referrers, publish_signature_referrer
from ..settings import RegistryOptions
from ..signed_entity import (
    StaticSignatures,
    StaticSignedEntity,
    signature_layer,
    simple_signing_payload,
)
from ..storage.oci_media_types import SIGNATURE_ARTIFACT_TYPE, artifact_type
from ..storage.oci_registry import OciRegistry
from ..storage.reference import Reference, parse_digest_reference
from ..storage.registry_factory import make_registry


@dataclass(frozen=True)
class OpsConfig:
    """Configuration for Operations facade."""
    verbose: bool = False         # Show detailed output


class Operations:
    """
    Application service facade for CLI operations.

    One method per CLI verb. Exceptions bubble up for central mapping in
    ``run_and_exit``. The registry is injected for tests, or built from
    the options on first use.
    """

    def __init__(self, config: OpsConfig, options: RegistryOptions,
                 registry: Optional[OciRegistry] = None):
        """
        Initialize Operations facade.

        Args:
            config: Configuration settings
            options: Registry options used when creating the registry
            registry: OCI registry (if None, created from options on first use)
        """
        self.cfg = config
        self.options = options
        self._registry = registry

    @property
    def registry(self) -> OciRegistry:
        if self._registry is None:
            self._registry = make_registry(self.options)
        return self._registry

    def artifact_type(self, kind: str) -> str:
        return artifact_type(kind)

    def payload(self, subject: str) -> bytes:
        """Build the simple-signing payload for a digest reference."""
        return simple_signing_payload(parse_digest_reference(subject))

    def attach(self, subject: str, payload_path: Path, signature_path: Path, *,
               certificate_path: Optional[Path] = None,
               chain_path: Optional[Path] = None) -> Reference:
        """
        Publish a signature read from files as a referrer of ``subject``.

        Args:
            subject: Digest reference of the signed artifact
            payload_path: File holding the signed payload
            signature_path: File holding the raw signature bytes
            certificate_path: Optional PEM signing certificate
            chain_path: Optional PEM certificate chain

        Returns:
            Target reference of the pushed referrer manifest
        """
        layer = signature_layer(
            payload_path.read_bytes(),
            signature_path.read_bytes(),
            certificate=certificate_path.read_bytes() if certificate_path else None,
            chain=chain_path.read_bytes() if chain_path else None,
        )
        entity = StaticSignedEntity(StaticSignatures([layer]))
        return publish_signature_referrer(subject, entity, registry=self.registry)

    def referrers(self, subject: str, artifact_type: str = SIGNATURE_ARTIFACT_TYPE) -> Dict[str, Any]:
        """List referrers of ``subject`` filtered by ``artifact_type``."""
        return list_referrers(subject, artifact_type, registry=self.registry)
