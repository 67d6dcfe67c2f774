"""
Data models and manifest helpers for referrer publishing.

The Descriptor model gives type safety for the subject descriptor fetched
from the registry. The manifest helpers are pure functions: they turn raw
signature-manifest bytes into the referrer manifest, serialize it, and
compute the digest that addresses it.
"""
from __future__ import annotations

import hashlib
import json
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .storage.oci_errors import DigestComputeError, ManifestParseError
from .storage.oci_media_types import INDEX_MEDIA_TYPES, SIGNATURE_ARTIFACT_TYPE


class Descriptor(BaseModel):
    """
    OCI content descriptor.

    Field order matches the wire order used by OCI tooling:
    mediaType, size, digest, then the optional fields.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    media_type: str = Field(..., alias="mediaType", description="Media type of the referenced content")
    size: int = Field(..., ge=0, description="Content size in bytes")
    digest: str = Field(..., description="Content digest (sha256:...)")
    annotations: Optional[Dict[str, str]] = Field(default=None, description="Descriptor annotations")
    artifact_type: Optional[str] = Field(default=None, alias="artifactType", description="Artifact type")

    def to_dict(self) -> Dict[str, Any]:
        """Wire form with OCI field names, optional fields omitted when unset."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Descriptor:
        return cls.model_validate(data)


def compute_digest(data: bytes) -> str:
    """
    Compute the sha256 content digest of ``data``.

    Raises:
        DigestComputeError: If ``data`` cannot be hashed
    """
    try:
        return f"sha256:{hashlib.sha256(data).hexdigest()}"
    except (TypeError, ValueError) as e:
        raise DigestComputeError(f"Failed to compute digest: {e}") from e


def parse_manifest(raw: bytes) -> Dict[str, Any]:
    """
    Parse raw manifest bytes into a dict, keeping key order.

    Raises:
        ManifestParseError: If the bytes are not an OCI image manifest
    """
    try:
        manifest = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestParseError(f"Invalid JSON in signature manifest: {e}") from e

    if not isinstance(manifest, dict):
        raise ManifestParseError(
            f"Signature manifest must be a JSON object, got {type(manifest).__name__}"
        )

    media_type = manifest.get("mediaType")
    if media_type in INDEX_MEDIA_TYPES:
        raise ManifestParseError(f"Expected an image manifest, got index media type: {media_type}")

    if not isinstance(manifest.get("config"), dict):
        raise ManifestParseError("Signature manifest has no config descriptor")

    return manifest


def build_referrer_manifest(raw_manifest: bytes, subject: Descriptor,
                            artifact_type: str = SIGNATURE_ARTIFACT_TYPE) -> Dict[str, Any]:
    """
    Turn a signature manifest into a referrer manifest.

    Sets ``config.mediaType`` to ``artifact_type`` and ``subject`` to the
    subject descriptor. Every other field, and the key order, is kept as
    parsed.

    Args:
        raw_manifest: Signature manifest bytes
        subject: Descriptor of the artifact being signed
        artifact_type: Artifact type for the config media type

    Returns:
        Mutated manifest dict

    Raises:
        ManifestParseError: If ``raw_manifest`` is not an image manifest
    """
    manifest = parse_manifest(raw_manifest)
    manifest["config"]["mediaType"] = artifact_type
    manifest["subject"] = subject.to_dict()
    return manifest


def serialize_manifest(manifest: Dict[str, Any]) -> bytes:
    """
    Serialize a manifest to compact JSON bytes.

    Key order is preserved, so the same dict always yields the same bytes
    and therefore the same digest.
    """
    return json.dumps(manifest, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


__all__ = [
    "Descriptor",
    "compute_digest",
    "parse_manifest",
    "build_referrer_manifest",
    "serialize_manifest",
]
