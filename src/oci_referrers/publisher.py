"""
Signature referrer publishing.

Main entry point for attaching signatures to registry artifacts using the
OCI 1.1 referrers model: the signature manifest gets a ``subject`` pointing
at the signed artifact and is pushed by digest instead of by tag.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

import typer

from .models import build_referrer_manifest, compute_digest, serialize_manifest
from .settings import DEFAULT_OPTIONS, RegistryOptions
from .signed_entity import SignedEntity
from .storage.oci_errors import ReferenceParseError, SignatureUnavailableError
from .storage.oci_media_types import (
    OCI_IMAGE_MANIFEST,
    SIGNATURE_ARTIFACT_TYPE,
    SIMPLE_SIGNING_MEDIA_TYPE,
    artifact_type,
)
from .storage.oci_registry import OciRegistry
from .storage.reference import Reference, parse_digest_reference
from .storage.registry_factory import make_registry

logger = logging.getLogger(__name__)

__all__ = ["artifact_type", "list_referrers", "publish_signature_referrer"]


def _as_digest_reference(subject: Union[str, Reference]) -> Reference:
    if isinstance(subject, Reference):
        if not subject.is_digest:
            raise ReferenceParseError(f"Expected a digest reference (name@sha256:...), got: {subject}")
        return subject
    return parse_digest_reference(subject)


def list_referrers(subject: Union[str, Reference],
                   artifact_type: str = SIGNATURE_ARTIFACT_TYPE, *,
                   registry: Optional[OciRegistry] = None,
                   options: Optional[RegistryOptions] = None) -> Dict[str, Any]:
    """
    List manifests attached to ``subject`` with the given artifact type.

    Args:
        subject: Digest reference of the artifact (e.g., "ghcr.io/org/app@sha256:...")
        artifact_type: artifactType to filter on (signature type by default)
        registry: OCI registry (created from options if None)
        options: Registry options (DEFAULT_OPTIONS, i.e. keychain auth, if None)

    Returns:
        OCI image index dict whose ``manifests`` are the matching descriptors

    Raises:
        ReferenceParseError: If subject is not a digest reference
        RegistryError: If the listing fails or the registry has no referrers API
    """
    ref = _as_digest_reference(subject)
    if registry is None:
        registry = make_registry(options or DEFAULT_OPTIONS)

    logger.debug(f"Listing referrers of {ref} with artifactType {artifact_type}")
    return registry.get_referrers(ref.repository, ref.digest, artifact_type)


def publish_signature_referrer(subject: Union[str, Reference],
                               signed_entity: SignedEntity, *,
                               registry: Optional[OciRegistry] = None,
                               options: Optional[RegistryOptions] = None) -> Reference:
    """
    Publish the signatures of ``signed_entity`` as a referrer of ``subject``.

    This is the main public interface for signature publishing. It:
    1. Resolves the subject descriptor with a HEAD request
    2. Collects the signature layers from the signed entity
    3. Uploads the layer blobs and the config blob to the subject's repository
    4. Rewrites the signature manifest with the artifact type and subject
    5. Pushes the rewritten manifest by its own digest

    Nothing is retried here; every registry error reaches the caller as is.
    Blobs uploaded before a failure stay in the registry.

    Args:
        subject: Digest reference of the artifact being signed
        signed_entity: Source of the signature layers and manifest
        registry: OCI registry (created from options if None)
        options: Registry options (DEFAULT_OPTIONS if None)

    Returns:
        Target reference ``<registry>/<repository>@<manifest-digest>``

    Raises:
        ReferenceParseError: If subject is not a digest reference
        NotFoundError: If the subject does not exist in the registry
        SignatureUnavailableError: If the entity has no signatures
        BlobWriteError: If a blob upload fails
        ManifestParseError: If the signature manifest is malformed
        DigestComputeError: If hashing the new manifest fails
        RegistryError: If the manifest push fails
    """
    ref = _as_digest_reference(subject)
    if registry is None:
        registry = make_registry(options or DEFAULT_OPTIONS)
    repo = ref.repository

    subject_desc = registry.head_manifest(repo, ref.digest)
    logger.debug(f"Resolved subject {ref} to {subject_desc.media_type} ({subject_desc.size} bytes)")

    try:
        signatures = signed_entity.signatures()
        layers = signatures.get()
    except Exception as e:
        raise SignatureUnavailableError(f"Failed to retrieve signatures for {ref}: {e}") from e
    if not layers:
        raise SignatureUnavailableError(f"No signatures to publish for {ref}")

    for layer in layers:
        _ensure_blob(registry, ref, layer.digest, layer.payload)
    config = signatures.raw_config_file()
    _ensure_blob(registry, ref, compute_digest(config), config)

    manifest = build_referrer_manifest(signatures.raw_manifest(), subject_desc, SIGNATURE_ARTIFACT_TYPE)
    payload = serialize_manifest(manifest)
    digest = compute_digest(payload)
    target = ref.with_digest(digest)

    # Layer type is reported as simple-signing whatever the manifest lists
    typer.echo(
        f"Uploading signature for [{ref}] to [{target}] with config.mediaType "
        f"[{SIGNATURE_ARTIFACT_TYPE}] layers[0].mediaType [{SIMPLE_SIGNING_MEDIA_TYPE}].",
        err=True,
    )

    media_type = manifest.get("mediaType", OCI_IMAGE_MANIFEST)
    registry.put_manifest(repo, digest, media_type, payload)
    return target


def _ensure_blob(registry: OciRegistry, ref: Reference, digest: str, data: bytes) -> None:
    """Upload blob unless the repository already has it."""
    if registry.blob_exists(ref.repository, digest):
        logger.debug(f"Blob {digest} already present in {ref.repository}, skipping upload")
        return
    registry.put_blob(ref.repository, digest, data)
