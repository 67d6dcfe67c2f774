"""
Fake OCI Registry implementation for testing.

This implementation follows the repo-aware OciRegistry protocol and stores
manifests and blobs in memory. Referrers are computed from the ``subject``
field of stored manifests, the way an OCI 1.1 registry does.
"""
from __future__ import annotations

import hashlib
import json
import re
from typing import Any, Dict, List, Optional, Tuple

from oci_referrers.models import Descriptor
from oci_referrers.storage.oci_errors import BlobWriteError, NotFoundError, OciDigestMismatch
from oci_referrers.storage.oci_media_types import OCI_IMAGE_INDEX
from oci_referrers.storage.reference import Repository

# Regex for validating SHA256 digests
_DIGEST_RE = re.compile(r"^sha256:[a-f0-9]{64}$")

__all__ = ["FakeOciRegistry"]


class FakeOciRegistry:
    """
    In-memory OCI registry implementation for testing.

    This is a test double; not for production use. Every mutating call is
    appended to ``writes`` so tests can assert on what was (not) written.
    """

    def __init__(self) -> None:
        # Storage keyed by repository
        self._manifests: Dict[Repository, Dict[str, Tuple[str, bytes]]] = {}  # repo -> {digest: (media_type, bytes)}
        self._blobs: Dict[Repository, Dict[str, bytes]] = {}                  # repo -> {digest: blob_bytes}
        self._tags: Dict[Repository, Dict[str, str]] = {}                     # repo -> {tag: digest}
        self.writes: List[Tuple[str, str]] = []                               # (kind, digest)
        self.fail_blob_writes = False

    def _ensure_repo(self, repo: Repository) -> None:
        """Ensure repo exists in storage."""
        self._manifests.setdefault(repo, {})
        self._blobs.setdefault(repo, {})
        self._tags.setdefault(repo, {})

    def _resolve(self, repo: Repository, ref: str) -> str:
        self._ensure_repo(repo)
        digest = ref if ref.startswith("sha256:") else self._tags[repo].get(ref)
        if digest is None or digest not in self._manifests[repo]:
            raise NotFoundError(f"Not found: manifest {repo}:{ref}")
        return digest

    def head_manifest(self, repo: Repository, ref: str) -> Descriptor:
        digest = self._resolve(repo, ref)
        media_type, payload = self._manifests[repo][digest]
        return Descriptor(media_type=media_type, size=len(payload), digest=digest)

    def blob_exists(self, repo: Repository, digest: str) -> bool:
        self._ensure_repo(repo)
        return digest in self._blobs[repo]

    def put_blob(self, repo: Repository, digest: str, data: bytes) -> None:
        if not _DIGEST_RE.match(digest):
            raise BlobWriteError(f"Invalid digest format: {digest}", digest=digest)
        if self.fail_blob_writes:
            raise BlobWriteError(f"Simulated upload failure for {digest}", digest=digest)

        computed = f"sha256:{hashlib.sha256(data).hexdigest()}"
        if digest != computed:
            raise BlobWriteError(f"Digest mismatch: expected {digest}, got {computed}", digest=digest)

        self._ensure_repo(repo)
        self._blobs[repo][digest] = data
        self.writes.append(("blob", digest))

    def put_manifest(self, repo: Repository, ref: str, media_type: str, payload: bytes) -> str:
        self._ensure_repo(repo)
        digest = f"sha256:{hashlib.sha256(payload).hexdigest()}"
        if ref.startswith("sha256:"):
            if ref != digest:
                raise OciDigestMismatch(f"Manifest pushed at {ref} hashes to {digest}",
                                        expected=ref, actual=digest)
        else:
            self._tags[repo][ref] = digest

        self._manifests[repo][digest] = (media_type, payload)
        self.writes.append(("manifest", digest))
        return digest

    def get_referrers(self, repo: Repository, digest: str,
                      artifact_type: Optional[str] = None) -> Dict[str, Any]:
        self._ensure_repo(repo)
        manifests = []
        for manifest_digest, (media_type, payload) in self._manifests[repo].items():
            document = json.loads(payload)
            subject = document.get("subject") or {}
            if subject.get("digest") != digest:
                continue
            entry_type = document.get("artifactType") or document.get("config", {}).get("mediaType")
            if artifact_type and entry_type != artifact_type:
                continue
            manifests.append({
                "mediaType": media_type,
                "size": len(payload),
                "digest": manifest_digest,
                "artifactType": entry_type,
            })
        return {"schemaVersion": 2, "mediaType": OCI_IMAGE_INDEX, "manifests": manifests}

    # Test utilities

    def seed_manifest(self, repo: Repository, payload: bytes, media_type: str, tag: Optional[str] = None) -> str:
        """Store a manifest without recording a write (test utility)."""
        self._ensure_repo(repo)
        digest = f"sha256:{hashlib.sha256(payload).hexdigest()}"
        self._manifests[repo][digest] = (media_type, payload)
        if tag:
            self._tags[repo][tag] = digest
        return digest

    def get_manifest(self, repo: Repository, ref: str) -> bytes:
        digest = self._resolve(repo, ref)
        return self._manifests[repo][digest][1]

    def get_blob(self, repo: Repository, digest: str) -> bytes:
        self._ensure_repo(repo)
        if digest not in self._blobs[repo]:
            raise NotFoundError(f"Not found: blob {repo}@{digest}")
        return self._blobs[repo][digest]

    def clear(self) -> None:
        """Clear all stored data (test utility)."""
        self._manifests.clear()
        self._blobs.clear()
        self._tags.clear()
        self.writes.clear()
