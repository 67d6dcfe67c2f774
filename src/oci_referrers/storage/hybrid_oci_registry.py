"""
Hybrid OCI Registry implementation.

Uses HTTP for manifest and referrers operations (full control over media
types, bytes and digests) and the ORAS SDK for blob uploads (streaming,
chunked uploads). Both sides resolve credentials from the same options.
"""
from __future__ import annotations

import logging
import os
import tempfile
from typing import Any, Dict, Optional

from oras.provider import Registry

from ..models import Descriptor, compute_digest
from ..settings import DEFAULT_OPTIONS, ExplicitAuth, RegistryOptions
from .oci_errors import BlobWriteError
from .reference import Repository
from .registry_http import DockerAuth, RegistryHTTP

logger = logging.getLogger(__name__)

_UPLOAD_OK = (200, 201, 202)


class HybridOciRegistry:
    """
    OCI registry implementation using an HTTP + SDK hybrid approach.

    One HTTP client and one ORAS client are created lazily per registry
    host and reused for the lifetime of this object.
    """

    def __init__(self, options: Optional[RegistryOptions] = None):
        """
        Initialize hybrid registry with options.

        Args:
            options: Auth and transport configuration (defaults to DEFAULT_OPTIONS)
        """
        self._options = options or DEFAULT_OPTIONS
        self._http: Dict[str, RegistryHTTP] = {}
        self._sdk: Dict[str, Registry] = {}

    def _http_client(self, registry: str) -> RegistryHTTP:
        """Get or create the HTTP client for a registry host."""
        if registry not in self._http:
            self._http[registry] = RegistryHTTP(
                registry=registry,
                auth=self._options.auth,
                transport=self._options.transport,
            )
        return self._http[registry]

    def _sdk_client(self, registry: str) -> Registry:
        """Get or create the ORAS SDK client for a registry host."""
        if registry not in self._sdk:
            insecure = self._options.transport.insecure
            sdk = Registry(hostname=registry, insecure=insecure, tls_verify=not insecure)
            auth = self._options.auth
            if isinstance(auth, ExplicitAuth):
                sdk.set_basic_auth(auth.username, auth.password)
                logger.debug(f"Using explicit username/password auth with oras-py for {registry}")
            else:
                # oras-py ignores the Docker config on upload
                docker_auth = DockerAuth(auth.config_path).get_credentials(registry)
                if docker_auth:
                    username, password = docker_auth
                    sdk.set_basic_auth(username, password)
                    logger.debug(f"Using Docker config auth with oras-py for {registry}")
                else:
                    logger.debug(f"No auth configured for {registry}, proceeding anonymous")
            self._sdk[registry] = sdk
        return self._sdk[registry]

    # Manifest and referrers operations via HTTP (full control)

    def head_manifest(self, repo: Repository, ref: str) -> Descriptor:
        """HEAD manifest and return its descriptor."""
        return self._http_client(repo.registry).head_manifest(repo.path, ref)

    def put_manifest(self, repo: Repository, ref: str, media_type: str, payload: bytes) -> str:
        """PUT manifest bytes and validate digest."""
        digest = self._http_client(repo.registry).put_manifest(repo.path, ref, media_type, payload)
        logger.debug(f"Pushed manifest {repo}@{digest} ({media_type}, {len(payload)} bytes)")
        return digest

    def get_referrers(self, repo: Repository, digest: str,
                      artifact_type: Optional[str] = None) -> Dict[str, Any]:
        """List referrers of a manifest digest."""
        return self._http_client(repo.registry).get_referrers(repo.path, digest, artifact_type)

    def blob_exists(self, repo: Repository, digest: str) -> bool:
        """Check if blob exists."""
        return self._http_client(repo.registry).blob_exists(repo.path, digest)

    # Blob operations via SDK

    def put_blob(self, repo: Repository, digest: str, data: bytes) -> None:
        """
        Upload blob via ORAS.

        Raises:
            BlobWriteError: If content doesn't match digest or the upload fails
        """
        computed = compute_digest(data)
        if computed != digest:
            raise BlobWriteError(f"Digest mismatch: expected {digest}, got {computed}", digest=digest)

        sdk = self._sdk_client(repo.registry)
        layer = {"digest": digest, "size": len(data), "mediaType": "application/octet-stream"}

        # oras-py uploads from a file path
        fd, path = tempfile.mkstemp(prefix="oci-referrers-blob-")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            container = sdk.get_container(repo.path)
            response = sdk.upload_blob(path, container, layer)
        except Exception as e:
            raise BlobWriteError(f"ORAS blob upload error for {repo}@{digest}: {e}", digest=digest) from e
        finally:
            os.unlink(path)

        if response.status_code not in _UPLOAD_OK:
            raise BlobWriteError(
                f"Blob upload for {repo}@{digest} failed with status {response.status_code}",
                digest=digest,
            )
        logger.debug(f"Uploaded blob {repo}@{digest} ({len(data)} bytes)")

    def close(self) -> None:
        """Close all HTTP clients."""
        for client in self._http.values():
            client.close()
        self._http.clear()


__all__ = ["HybridOciRegistry"]
