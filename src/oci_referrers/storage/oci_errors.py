"""
OCI registry error classes.

Provides a clear taxonomy of errors that can occur while publishing or
listing referrers. HTTP status codes and SDK exceptions are mapped onto
these classes so callers see the same errors regardless of which registry
implementation is in use.
"""
from __future__ import annotations


class OciError(Exception):
    """Base class for all errors raised by oci-referrers."""
    pass


class ReferenceParseError(OciError):
    """
    Malformed registry coordinate.

    Raised when a subject or target reference string cannot be parsed,
    or when a digest reference was required and a tag was given.
    """
    pass


class NotFoundError(OciError):
    """
    Resource not found in registry.

    Raised when:
    - HTTP 404 Not Found on a manifest HEAD (subject does not exist)
    - HTTP 404 on a blob or repository lookup
    """
    pass


class SignatureUnavailableError(OciError):
    """Signed entity yields no signatures, or retrieving them failed."""
    pass


class BlobWriteError(OciError):
    """
    A layer or config blob upload failed.

    Already-written blobs are left in place. Blobs are content addressed,
    so leftovers are harmless.
    """

    def __init__(self, message: str, digest: str | None = None):
        super().__init__(message)
        self.digest = digest


class ManifestParseError(OciError):
    """
    Manifest bytes are not a usable OCI image manifest.

    Raised for malformed JSON, a non-object document, an index media type,
    or a manifest without a config descriptor.
    """
    pass


class DigestComputeError(OciError):
    """Hashing the serialized manifest failed."""
    pass


class RegistryError(OciError):
    """
    Generic transport, auth or server failure.

    Carries the HTTP status code when the failure came from a response.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class OciAuthError(RegistryError):
    """
    Authentication or authorization error.

    Raised when:
    - HTTP 401 Unauthorized (invalid credentials)
    - HTTP 403 Forbidden (insufficient permissions)
    """
    pass


class OciRateLimited(RegistryError):
    """
    Rate limit exceeded.

    Raised when:
    - HTTP 429 Too Many Requests
    """
    pass


class OciDigestMismatch(RegistryError):
    """
    Content digest validation failed.

    Raised when the Docker-Content-Digest returned for a manifest PUT
    differs from the digest computed locally over the pushed bytes.
    """

    def __init__(self, message: str, expected: str | None = None, actual: str | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class ReferrersUnsupported(RegistryError):
    """Registry does not implement the OCI 1.1 referrers API."""
    pass


__all__ = [
    "OciError",
    "ReferenceParseError",
    "NotFoundError",
    "SignatureUnavailableError",
    "BlobWriteError",
    "ManifestParseError",
    "DigestComputeError",
    "RegistryError",
    "OciAuthError",
    "OciRateLimited",
    "OciDigestMismatch",
    "ReferrersUnsupported",
]
