"""
Registry reference parsing.

Centralizes the logic for turning ``registry/repo[:tag][@digest]`` strings
into structured coordinates. Follows the Docker reference conventions:
a leading component is a registry host only if it looks like one, and bare
Docker Hub names live under ``library/``.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import Optional

from .oci_errors import ReferenceParseError

DEFAULT_REGISTRY = "index.docker.io"
DEFAULT_TAG = "latest"

_REGISTRY_RE = re.compile(r"^[a-zA-Z0-9.-]+(?::[0-9]+)?$")
_REPO_RE = re.compile(r"^[a-z0-9][a-z0-9._-]*(?:/[a-z0-9][a-z0-9._-]*)*$")
_TAG_RE = re.compile(r"^[\w][\w.-]{0,127}$")
_DIGEST_RE = re.compile(r"^[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-zA-Z0-9=_-]+$")
_SHA256_RE = re.compile(r"^sha256:[a-f0-9]{64}$")

__all__ = [
    "DEFAULT_REGISTRY",
    "Repository",
    "Reference",
    "parse_reference",
    "parse_digest_reference",
    "validate_digest",
]


@dataclass(frozen=True)
class Repository:
    """
    A repository within a registry.

    Attributes:
        registry: Registry host, optionally with port (e.g., "ghcr.io", "localhost:5000")
        path: Repository path (e.g., "org/app")
    """
    registry: str
    path: str

    def __str__(self) -> str:
        return f"{self.registry}/{self.path}"


@dataclass(frozen=True)
class Reference:
    """
    A parsed registry reference.

    At least one of ``tag`` or ``digest`` is always set.
    """
    repository: Repository
    tag: Optional[str] = None
    digest: Optional[str] = None

    @property
    def registry(self) -> str:
        return self.repository.registry

    @property
    def repository_path(self) -> str:
        return self.repository.path

    @property
    def is_digest(self) -> bool:
        return self.digest is not None

    def with_digest(self, digest: str) -> Reference:
        """Return a digest reference to ``digest`` in the same repository."""
        validate_digest(digest)
        return replace(self, tag=None, digest=digest)

    def __str__(self) -> str:
        if self.digest:
            return f"{self.repository}@{self.digest}"
        return f"{self.repository}:{self.tag}"


def validate_digest(digest: str) -> None:
    """
    Validate an ``algorithm:encoded`` digest string.

    Raises:
        ReferenceParseError: If the digest is malformed. sha256 digests
            must carry exactly 64 lowercase hex characters.
    """
    if not _DIGEST_RE.match(digest):
        raise ReferenceParseError(f"Invalid digest format: {digest}")
    if digest.startswith("sha256:") and not _SHA256_RE.match(digest):
        raise ReferenceParseError(f"Invalid sha256 digest: {digest}")


def _split_registry(name: str) -> tuple[str, str]:
    """Split a name into registry host and repository path."""
    parts = name.split("/", 1)
    first = parts[0]
    if len(parts) == 2 and ("." in first or ":" in first or first == "localhost"):
        registry, path = parts
    else:
        registry, path = DEFAULT_REGISTRY, name

    if registry == "docker.io":
        registry = DEFAULT_REGISTRY
    if registry == DEFAULT_REGISTRY and "/" not in path:
        path = f"library/{path}"

    return registry, path


def parse_reference(ref_str: str) -> Reference:
    """
    Parse a registry reference string.

    Accepts:
    - "registry.example/repo@sha256:<hex>"
    - "registry.example:5000/org/repo:tag"
    - "repo" (Docker Hub, tag "latest")

    Args:
        ref_str: Reference string

    Returns:
        Parsed Reference

    Raises:
        ReferenceParseError: If any component is malformed

    Examples:
        >>> str(parse_reference("alpine"))
        'index.docker.io/library/alpine:latest'
        >>> parse_reference("localhost:5000/app:v1").registry
        'localhost:5000'
    """
    if not ref_str:
        raise ReferenceParseError("Reference cannot be empty")
    if ref_str != ref_str.strip() or " " in ref_str:
        raise ReferenceParseError(f"Reference contains whitespace: {ref_str!r}")

    name = ref_str
    digest = None
    if "@" in name:
        name, digest = name.split("@", 1)
        validate_digest(digest)

    tag = None
    colon = name.rfind(":")
    if colon > name.rfind("/"):
        name, tag = name[:colon], name[colon + 1:]
        if not _TAG_RE.match(tag):
            raise ReferenceParseError(f"Invalid tag '{tag}' in reference: {ref_str}")

    if not name:
        raise ReferenceParseError(f"Reference missing repository: {ref_str}")

    registry, path = _split_registry(name)
    if not _REGISTRY_RE.match(registry):
        raise ReferenceParseError(f"Invalid registry '{registry}' in reference: {ref_str}")
    if not _REPO_RE.match(path):
        raise ReferenceParseError(
            f"Invalid repository '{path}' in reference: {ref_str}. "
            f"Must follow OCI naming conventions."
        )

    if tag is None and digest is None:
        tag = DEFAULT_TAG

    return Reference(repository=Repository(registry=registry, path=path), tag=tag, digest=digest)


def parse_digest_reference(ref_str: str) -> Reference:
    """
    Parse a reference that must be pinned to a digest.

    Raises:
        ReferenceParseError: If the reference is malformed or has no digest
    """
    ref = parse_reference(ref_str)
    if not ref.is_digest:
        raise ReferenceParseError(f"Expected a digest reference (name@sha256:...), got: {ref_str}")
    return ref
