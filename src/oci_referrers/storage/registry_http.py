"""
Registry HTTP Client for OCI Distribution API.

Provides HTTP-based registry operations with the Docker Registry v2 auth
flow: manifest HEAD/PUT with full control over bytes and media types,
blob existence checks, and the OCI 1.1 referrers API.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import os
import re
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union
from urllib.parse import urljoin

import httpx
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..models import Descriptor, compute_digest
from ..settings import ExplicitAuth, KeychainAuth, TransportOptions
from .oci_errors import (
    NotFoundError,
    OciAuthError,
    OciDigestMismatch,
    OciRateLimited,
    RegistryError,
    ReferrersUnsupported,
)
from .oci_media_types import ACCEPTED_MANIFEST_TYPES, OCI_IMAGE_INDEX

logger = logging.getLogger(__name__)

# Docker Hub stores its credentials under the legacy index URL
_DOCKER_HUB_AUTH_KEY = "https://index.docker.io/v1/"
_DOCKER_HUB_API_HOST = "registry-1.docker.io"


class DockerAuth:
    """Handle Docker Registry authentication from config files."""

    def __init__(self, config_path: Optional[Path] = None):
        if config_path is None:
            docker_config_dir = os.getenv("DOCKER_CONFIG", str(Path.home() / ".docker"))
            config_path = Path(docker_config_dir) / "config.json"
        self.config_path = config_path
        self._config_cache: Optional[dict] = None
        self._config_mtime: Optional[float] = None

    def get_credentials(self, registry: str) -> Optional[Tuple[str, str]]:
        """
        Get credentials for registry from Docker config.

        Returns: (username, password) or None if not found
        """
        config = self._load_config()
        if not config:
            return None

        auths = config.get("auths", {})

        candidates = [registry, f"https://{registry}", f"http://{registry}"]
        if registry in ("index.docker.io", "docker.io"):
            candidates.insert(0, _DOCKER_HUB_AUTH_KEY)

        auth_entry = next((auths[key] for key in candidates if key in auths), None)
        if auth_entry is None:
            return None

        # Handle base64 encoded auth field
        if "auth" in auth_entry:
            try:
                decoded = base64.b64decode(auth_entry["auth"]).decode()
            except (binascii.Error, UnicodeDecodeError) as e:
                logger.debug(f"Ignoring undecodable auth entry for {registry}: {e}")
            else:
                if ":" in decoded:
                    username, password = decoded.split(":", 1)
                    return (username, password)

        # Handle username/password fields
        if "username" in auth_entry and "password" in auth_entry:
            return (auth_entry["username"], auth_entry["password"])

        return None

    def _load_config(self) -> Optional[dict]:
        """Load Docker config with caching and mtime checking."""
        if not self.config_path.exists():
            return None

        try:
            current_mtime = self.config_path.stat().st_mtime

            # Use cached version if file hasn't changed
            if (self._config_cache is not None and
                self._config_mtime is not None and
                current_mtime == self._config_mtime):
                return self._config_cache

            with open(self.config_path, 'r') as f:
                config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.debug(f"Failed to read Docker config {self.config_path}: {e}")
            return None

        self._config_cache = config
        self._config_mtime = current_mtime
        return config


def _error_for_status(response: httpx.Response, what: str) -> RegistryError | NotFoundError:
    """Map an error response onto the oci_errors taxonomy."""
    status = response.status_code
    if status == 404:
        return NotFoundError(f"Not found: {what}")
    if status in (401, 403):
        return OciAuthError(f"Authentication failed for {what}", status_code=status)
    if status == 429:
        return OciRateLimited(f"Rate limited while accessing {what}", status_code=status)
    return RegistryError(f"Registry error {status} for {what}: {response.text[:200]}", status_code=status)


@contextmanager
def _translate_errors(what: str) -> Iterator[None]:
    try:
        yield
    except httpx.HTTPStatusError as e:
        raise _error_for_status(e.response, what) from e
    except httpx.RequestError as e:
        raise RegistryError(f"Network error for {what}: {e}") from e


class RegistryHTTP:
    """
    HTTP client for OCI Distribution API operations against one registry.

    Implements the Docker Registry v2 auth flow with Bearer and Basic
    challenges, and retries timed-out requests when configured to.
    """

    def __init__(self, registry: str, auth: Union[KeychainAuth, ExplicitAuth, None] = None,
                 transport: Optional[TransportOptions] = None):
        """
        Initialize registry HTTP client.

        Args:
            registry: Registry hostname (e.g., "localhost:5000", "ghcr.io")
            auth: Credential source (defaults to the Docker config keychain)
            transport: Transport options (defaults to TransportOptions())
        """
        self.registry = registry
        self.auth = auth or KeychainAuth()
        self.transport = transport or TransportOptions()
        self._keychain = DockerAuth(self.auth.config_path) if isinstance(self.auth, KeychainAuth) else None

        host = _DOCKER_HUB_API_HOST if registry == "index.docker.io" else registry
        scheme = "http" if self.transport.insecure else "https"
        self.base_url = f"{scheme}://{host}"

        self.client = httpx.Client(
            timeout=httpx.Timeout(self.transport.timeout_s),
            follow_redirects=True,
            verify=not self.transport.insecure,
            headers={"User-Agent": self.transport.user_agent},
            transport=self.transport.transport,
        )

        # Token cache: {service:scope: (token, expiry_timestamp)}
        self._token_cache: Dict[str, Tuple[str, float]] = {}

    def head_manifest(self, repo: str, ref: str) -> Descriptor:
        """
        Fetch manifest descriptor without downloading content.

        Falls back to GET when the registry omits the size or media type
        headers on HEAD.

        Args:
            repo: Repository path
            ref: Tag or digest reference

        Returns:
            Descriptor built from Docker-Content-Digest, Content-Length and Content-Type

        Raises:
            NotFoundError: If the manifest doesn't exist
            OciDigestMismatch: If a digest ref resolves to a different digest
            RegistryError: For other registry errors
        """
        url = f"/v2/{repo}/manifests/{ref}"
        headers = {"Accept": ", ".join(ACCEPTED_MANIFEST_TYPES)}
        what = f"manifest {repo}:{ref}"

        with _translate_errors(what):
            response = self._request("HEAD", url, headers=headers)

            digest = response.headers.get("Docker-Content-Digest")
            media_type = _content_type(response)
            size = response.headers.get("Content-Length")

            if not (media_type and size):
                logger.debug(f"HEAD {what} missing descriptor headers, falling back to GET")
                response = self._request("GET", url, headers=headers)
                body = response.content
                size = str(len(body))
                digest = digest or response.headers.get("Docker-Content-Digest") or compute_digest(body)
                media_type = _content_type(response) or _body_media_type(body)

        if not digest:
            if not ref.startswith("sha256:"):
                raise RegistryError(f"Registry did not return Docker-Content-Digest header for {what}")
            digest = ref

        if ref.startswith("sha256:") and digest != ref:
            raise OciDigestMismatch(
                f"Manifest digest mismatch for {repo}: requested {ref}, registry returned {digest}",
                expected=ref, actual=digest,
            )

        if not media_type:
            raise RegistryError(f"Could not determine media type for {what}")

        return Descriptor(media_type=media_type, size=int(size), digest=digest)

    def blob_exists(self, repo: str, digest: str) -> bool:
        """
        Check if blob exists in repository.

        Returns:
            True on 200, False on 404

        Raises:
            OciAuthError: If authentication fails
            RegistryError: For other registry errors
        """
        what = f"blob {repo}@{digest}"
        try:
            with _translate_errors(what):
                self._request("HEAD", f"/v2/{repo}/blobs/{digest}")
        except NotFoundError:
            return False
        return True

    def put_manifest(self, repo: str, ref: str, media_type: str, payload: bytes) -> str:
        """
        PUT manifest bytes exactly as given.

        Returns:
            Canonical digest (validated against the local digest of payload)

        Raises:
            OciDigestMismatch: If server digest != local digest
            OciAuthError: If authentication fails
            RegistryError: For other registry errors
        """
        local_digest = compute_digest(payload)
        what = f"manifest {repo}:{ref}"

        with _translate_errors(what):
            response = self._request(
                "PUT", f"/v2/{repo}/manifests/{ref}",
                headers={"Content-Type": media_type},
                content=payload,
            )

        server_digest = response.headers.get("Docker-Content-Digest", local_digest)
        if server_digest != local_digest:
            raise OciDigestMismatch(
                f"Registry stored {what} as {server_digest}, expected {local_digest}",
                expected=local_digest, actual=server_digest,
            )
        return server_digest

    def get_referrers(self, repo: str, digest: str, artifact_type: Optional[str] = None) -> Dict[str, Any]:
        """
        List referrers of ``digest`` through the OCI 1.1 referrers API.

        Follows Link pagination and filters client-side when the registry
        did not apply the artifactType filter.

        Returns:
            OCI image index dict

        Raises:
            ReferrersUnsupported: If the registry answers 404
            OciAuthError: If authentication fails
            RegistryError: For other registry errors
        """
        what = f"referrers of {repo}@{digest}"
        headers = {"Accept": OCI_IMAGE_INDEX}
        params = {"artifactType": artifact_type} if artifact_type else None

        manifests: List[Dict[str, Any]] = []
        filters_applied = True
        url: Optional[str] = f"/v2/{repo}/referrers/{digest}"

        while url:
            try:
                with _translate_errors(what):
                    response = self._request("GET", url, headers=headers, params=params)
            except NotFoundError as e:
                raise ReferrersUnsupported(
                    f"Registry {self.registry} does not support the referrers API", status_code=404
                ) from e

            try:
                page = response.json()
            except json.JSONDecodeError as e:
                raise RegistryError(f"Invalid JSON in {what}: {e}") from e
            if not isinstance(page, dict):
                raise RegistryError(f"Expected an image index object in {what}, got {type(page).__name__}")

            manifests.extend(page.get("manifests") or [])
            applied = response.headers.get("OCI-Filters-Applied", "")
            filters_applied = filters_applied and "artifactType" in applied.split(",")

            # Next page URLs already carry their query string
            url = response.links.get("next", {}).get("url")
            params = None

        if artifact_type and not filters_applied:
            manifests = [m for m in manifests if m.get("artifactType") == artifact_type]

        return {"schemaVersion": 2, "mediaType": OCI_IMAGE_INDEX, "manifests": manifests}

    def _credentials(self) -> Optional[Tuple[str, str]]:
        if isinstance(self.auth, ExplicitAuth):
            return (self.auth.username, self.auth.password)
        return self._keychain.get_credentials(self.registry)

    def _request(self, method: str, path: str, headers: Optional[dict] = None, **kwargs) -> httpx.Response:
        """
        Make HTTP request, retrying timeouts ``transport.retries`` times.

        Raises:
            httpx.HTTPStatusError: For error responses
            httpx.RequestError: For transport failures after retries
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.transport.retries + 1),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TimeoutException),
            reraise=True,
        )
        url = urljoin(self.base_url, path)
        response = retrying(self._send, method, url, dict(headers or {}), **kwargs)
        response.raise_for_status()
        return response

    def _send(self, method: str, url: str, headers: dict, **kwargs) -> httpx.Response:
        """
        Send one request with transparent auth.

        Handles 401 responses by:
        1. Parsing WWW-Authenticate for a Bearer or Basic challenge
        2. Looking up credentials (explicit or Docker config)
        3. Exchanging credentials for a Bearer token, or using Basic auth
        4. Retrying the original request with the Authorization header
        """
        response = self.client.request(method, url, headers=headers, **kwargs)
        if response.status_code != 401:
            return response

        challenge = response.headers.get("WWW-Authenticate", "")
        authorization = None
        if challenge.lower().startswith("bearer "):
            token = self._handle_bearer_auth(challenge)
            if token:
                authorization = f"Bearer {token}"
        elif challenge.lower().startswith("basic"):
            creds = self._credentials()
            if creds:
                encoded = base64.b64encode(f"{creds[0]}:{creds[1]}".encode()).decode()
                authorization = f"Basic {encoded}"

        if authorization is None:
            return response

        headers = {**headers, "Authorization": authorization}
        return self.client.request(method, url, headers=headers, **kwargs)

    def _handle_bearer_auth(self, www_authenticate: str) -> Optional[str]:
        """
        Handle Bearer token authentication flow.

        Parses the challenge, then exchanges credentials (or nothing, for
        anonymous pulls) for a token at the realm.
        """
        # Format: Bearer realm="...",service="...",scope="..."
        bearer_params = dict(re.findall(r'(\w+)="([^"]*)"', www_authenticate))

        realm = bearer_params.get("realm")
        service = bearer_params.get("service")
        scope = bearer_params.get("scope")

        if not realm:
            return None

        cache_key = f"{service or ''}:{scope or ''}"
        if cache_key in self._token_cache:
            token, expiry = self._token_cache[cache_key]
            if time.time() < expiry - 30:  # 30s buffer before expiry
                return token

        params = {key: value for key, value in (("service", service), ("scope", scope)) if value}
        creds = self._credentials()
        if creds is None:
            logger.debug(f"No credentials for {self.registry}, requesting anonymous token")

        try:
            auth_response = self.client.get(realm, params=params, auth=creds)
            auth_response.raise_for_status()
            token_data = auth_response.json()
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            logger.debug(f"Token exchange with {realm} failed: {e}")
            return None

        token = token_data.get("token") or token_data.get("access_token")
        if not token:
            return None

        expires_in = token_data.get("expires_in", 3600)
        self._token_cache[cache_key] = (token, time.time() + expires_in)
        return token

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _content_type(response: httpx.Response) -> Optional[str]:
    value = response.headers.get("Content-Type")
    if not value:
        return None
    return value.split(";", 1)[0].strip() or None


def _body_media_type(body: bytes) -> Optional[str]:
    try:
        document = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return document.get("mediaType") if isinstance(document, dict) else None


__all__ = ["DockerAuth", "RegistryHTTP"]
