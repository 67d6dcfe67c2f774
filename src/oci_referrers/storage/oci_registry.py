"""
OCI Registry protocol definition.

Defines the repo-aware interface the publisher needs from a registry
client. All operations are explicitly scoped to a repository, which
reflects how the OCI Distribution API works.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ..models import Descriptor
from .reference import Repository


@runtime_checkable
class OciRegistry(Protocol):
    """Repo-aware OCI registry operations used for referrer publishing."""

    def head_manifest(self, repo: Repository, ref: str) -> Descriptor:
        """
        HEAD manifest and return its descriptor.

        Args:
            repo: Repository holding the manifest
            ref: Tag or digest reference (e.g., "v1.0", "sha256:abc...")

        Returns:
            Descriptor with digest, size and media type of the manifest

        Raises:
            NotFoundError: If manifest doesn't exist
            OciAuthError: If authentication fails
            RegistryError: For other registry errors
        """
        ...

    def blob_exists(self, repo: Repository, digest: str) -> bool:
        """
        Check if blob exists in repository.

        Raises:
            OciAuthError: If authentication fails
            RegistryError: For other registry errors
        """
        ...

    def put_blob(self, repo: Repository, digest: str, data: bytes) -> None:
        """
        Upload a blob under its content digest.

        Raises:
            BlobWriteError: If the upload fails for any reason
        """
        ...

    def put_manifest(self, repo: Repository, ref: str, media_type: str, payload: bytes) -> str:
        """
        PUT manifest bytes with explicit media type, return canonical digest.

        The canonical digest returned by the registry is checked against
        the local computation over ``payload``.

        Args:
            repo: Repository to push to
            ref: Tag or digest to push at
            media_type: Content-Type for the manifest
            payload: Exact manifest bytes

        Returns:
            Canonical digest after validation

        Raises:
            OciDigestMismatch: If server digest != local digest
            OciAuthError: If authentication fails
            RegistryError: For other registry errors
        """
        ...

    def get_referrers(self, repo: Repository, digest: str,
                      artifact_type: Optional[str] = None) -> Dict[str, Any]:
        """
        List manifests whose subject is ``digest``.

        Args:
            repo: Repository holding the subject
            digest: Subject manifest digest
            artifact_type: Only return entries with this artifactType

        Returns:
            OCI image index dict with a ``manifests`` list

        Raises:
            ReferrersUnsupported: If the registry has no referrers API
            OciAuthError: If authentication fails
            RegistryError: For other registry errors
        """
        ...


__all__ = ["OciRegistry"]
