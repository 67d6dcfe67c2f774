"""
Signed entity protocols and a static implementation.

The publisher only needs two capabilities from whatever holds the
signatures: the signature layer blobs, and the raw signature manifest.
``StaticSignatures`` builds both from in-memory payload and signature
bytes using the cosign simple-signing layout.
"""
from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, runtime_checkable

from .models import Descriptor, compute_digest, serialize_manifest
from .storage.oci_media_types import (
    CERTIFICATE_ANNOTATION,
    CHAIN_ANNOTATION,
    OCI_IMAGE_CONFIG,
    OCI_IMAGE_MANIFEST,
    SIGNATURE_ANNOTATION,
    SIMPLE_SIGNING_MEDIA_TYPE,
)
from .storage.reference import Reference

# Zero timestamp used by cosign for reproducible config files
_EPOCH = "0001-01-01T00:00:00Z"


@dataclass(frozen=True)
class SignatureLayer:
    """A single signature blob plus the descriptor metadata pointing at it."""
    payload: bytes
    media_type: str = SIMPLE_SIGNING_MEDIA_TYPE
    annotations: Dict[str, str] = field(default_factory=dict)

    @property
    def digest(self) -> str:
        return compute_digest(self.payload)

    @property
    def size(self) -> int:
        return len(self.payload)

    def descriptor(self) -> Descriptor:
        return Descriptor(
            media_type=self.media_type,
            size=self.size,
            digest=self.digest,
            annotations=dict(self.annotations) or None,
        )


@runtime_checkable
class Signatures(Protocol):
    """Signature layers and the manifest that lists them."""

    def get(self) -> List[SignatureLayer]:
        """
        Return the signature layers in manifest order.

        Raises:
            Exception: Any failure to retrieve the layers
        """
        ...

    def raw_manifest(self) -> bytes:
        """Return the signature manifest bytes."""
        ...

    def raw_config_file(self) -> bytes:
        """Return the config blob referenced by the signature manifest."""
        ...


@runtime_checkable
class SignedEntity(Protocol):
    """Anything that can hand over its signatures."""

    def signatures(self) -> Signatures:
        ...


class StaticSignatures:
    """
    In-memory signature set.

    The config file and manifest are derived deterministically from the
    layers, so the same layers always produce the same manifest bytes.
    """

    def __init__(self, layers: List[SignatureLayer]):
        self._layers = list(layers)

    def get(self) -> List[SignatureLayer]:
        return list(self._layers)

    def raw_config_file(self) -> bytes:
        config = {
            "architecture": "",
            "config": {},
            "created": _EPOCH,
            "history": [{"created": _EPOCH}],
            "os": "",
            "rootfs": {
                "type": "layers",
                "diff_ids": [layer.digest for layer in self._layers],
            },
        }
        return serialize_manifest(config)

    def raw_manifest(self) -> bytes:
        config = self.raw_config_file()
        manifest = {
            "schemaVersion": 2,
            "mediaType": OCI_IMAGE_MANIFEST,
            "config": Descriptor(
                media_type=OCI_IMAGE_CONFIG,
                size=len(config),
                digest=compute_digest(config),
            ).to_dict(),
            "layers": [layer.descriptor().to_dict() for layer in self._layers],
        }
        return serialize_manifest(manifest)


class StaticSignedEntity:
    """Signed entity backed by a fixed signature set."""

    def __init__(self, signatures: Signatures):
        self._signatures = signatures

    def signatures(self) -> Signatures:
        return self._signatures


def simple_signing_payload(subject: Reference) -> bytes:
    """
    Build the cosign simple-signing payload for a digest reference.

    This is the document a signer signs; the signature then travels in the
    layer annotations next to it.
    """
    if not subject.is_digest:
        raise ValueError(f"Simple-signing payload requires a digest reference, got: {subject}")

    payload = {
        "critical": {
            "identity": {"docker-reference": str(subject.repository)},
            "image": {"docker-manifest-digest": subject.digest},
            "type": "cosign container image signature",
        },
        "optional": None,
    }
    return serialize_manifest(payload)


def signature_layer(payload: bytes, signature: bytes, *,
                    certificate: Optional[bytes] = None,
                    chain: Optional[bytes] = None) -> SignatureLayer:
    """
    Build a simple-signing layer from a payload and its raw signature.

    The signature is stored base64-encoded in the layer annotations, along
    with the PEM certificate and chain when given.
    """
    annotations = {SIGNATURE_ANNOTATION: base64.b64encode(signature).decode("ascii")}
    if certificate:
        annotations[CERTIFICATE_ANNOTATION] = certificate.decode("utf-8")
    if chain:
        annotations[CHAIN_ANNOTATION] = chain.decode("utf-8")
    return SignatureLayer(payload=payload, annotations=annotations)


__all__ = [
    "SignatureLayer",
    "Signatures",
    "SignedEntity",
    "StaticSignatures",
    "StaticSignedEntity",
    "simple_signing_payload",
    "signature_layer",
]
