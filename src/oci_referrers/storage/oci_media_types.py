"""
OCI media types and constants.

Single source of truth for all OCI and cosign media types. Publishing and
listing both read SIGNATURE_ARTIFACT_TYPE from here so the type written at
publish time is the type filtered on at listing time.
"""
from __future__ import annotations

# OCI standard manifest types
OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
OCI_IMAGE_INDEX = "application/vnd.oci.image.index.v1+json"
OCI_IMAGE_CONFIG = "application/vnd.oci.image.config.v1+json"

# Docker manifest types still served by many registries
DOCKER_MANIFEST_V2 = "application/vnd.docker.distribution.manifest.v2+json"
DOCKER_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"

# Accept header for manifest HEAD/GET (in order of preference)
ACCEPTED_MANIFEST_TYPES = [
    OCI_IMAGE_MANIFEST,
    OCI_IMAGE_INDEX,
    DOCKER_MANIFEST_V2,
    DOCKER_MANIFEST_LIST,
]

INDEX_MEDIA_TYPES = frozenset({OCI_IMAGE_INDEX, DOCKER_MANIFEST_LIST})

# cosign layer and annotation conventions
SIMPLE_SIGNING_MEDIA_TYPE = "application/vnd.dev.cosign.simplesigning.v1+json"
SIGNATURE_ANNOTATION = "dev.cosignproject.cosign/signature"
CERTIFICATE_ANNOTATION = "dev.sigstore.cosign/certificate"
CHAIN_ANNOTATION = "dev.sigstore.cosign/chain"

ARTIFACT_TYPE_FORMAT = "application/vnd.dev.cosign.artifact.{name}.v1+json"


def artifact_type(name: str) -> str:
    """
    Convert an attachment name (sig, sbom, att, ...) into an OCI 1.1 artifactType.

    No validation is applied; ``name`` is interpolated verbatim.

    Examples:
        >>> artifact_type("sig")
        'application/vnd.dev.cosign.artifact.sig.v1+json'
    """
    return ARTIFACT_TYPE_FORMAT.format(name=name)


SIGNATURE_ARTIFACT_TYPE = artifact_type("sig")


__all__ = [
    "OCI_IMAGE_MANIFEST",
    "OCI_IMAGE_INDEX",
    "OCI_IMAGE_CONFIG",
    "DOCKER_MANIFEST_V2",
    "DOCKER_MANIFEST_LIST",
    "ACCEPTED_MANIFEST_TYPES",
    "INDEX_MEDIA_TYPES",
    "SIMPLE_SIGNING_MEDIA_TYPE",
    "SIGNATURE_ANNOTATION",
    "CERTIFICATE_ANNOTATION",
    "CHAIN_ANNOTATION",
    "ARTIFACT_TYPE_FORMAT",
    "artifact_type",
    "SIGNATURE_ARTIFACT_TYPE",
]
