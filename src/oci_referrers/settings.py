"""
Registry options for oci-referrers.

Replaces variadic registry options with one explicit structure whose
defaults are stated up front: keychain auth and the default transport.
Options are validated with fail-fast behavior at construction time.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import httpx

__all__ = [
    "KeychainAuth",
    "ExplicitAuth",
    "TransportOptions",
    "RegistryOptions",
    "DEFAULT_OPTIONS",
    "create_options_from_env",
]


@dataclass(frozen=True)
class KeychainAuth:
    """
    Resolve credentials from the Docker config file.

    Attributes:
        config_path: Path to config.json (defaults to $DOCKER_CONFIG/config.json,
            then ~/.docker/config.json). Registries without an entry are
            accessed anonymously.
    """
    config_path: Optional[Path] = None


@dataclass(frozen=True)
class ExplicitAuth:
    """Use the given username and password for every registry."""
    username: str
    password: str

    def __post_init__(self):
        if not self.username:
            raise ValueError("username is required for explicit auth")
        if not self.password:
            raise ValueError("password is required for explicit auth")

    def __repr__(self) -> str:
        return f"ExplicitAuth(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class TransportOptions:
    """
    HTTP transport configuration.

    Attributes:
        insecure: Use plain HTTP and skip TLS verification (local/dev registries)
        timeout_s: Per-request timeout in seconds
        retries: Retries for timed-out requests (0 = no retry)
        user_agent: User-Agent header value
        transport: Custom httpx transport (None = httpx default)
    """
    insecure: bool = False
    timeout_s: float = 30.0
    retries: int = 0
    user_agent: str = "oci-referrers/0.1.0"
    transport: Optional[httpx.BaseTransport] = None

    def __post_init__(self):
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")
        if self.retries < 0:
            raise ValueError(f"retries must be non-negative, got {self.retries}")


@dataclass(frozen=True)
class RegistryOptions:
    """
    Registry client configuration.

    Defaults: keychain auth, default transport.
    """
    auth: Union[KeychainAuth, ExplicitAuth] = field(default_factory=KeychainAuth)
    transport: TransportOptions = field(default_factory=TransportOptions)


DEFAULT_OPTIONS = RegistryOptions()


def create_options_from_env() -> RegistryOptions:
    """
    Load registry options from environment variables.

    Environment Variables:
        - OCI_REFERRERS_USERNAME (optional, requires password)
        - OCI_REFERRERS_PASSWORD (optional, requires username)
        - OCI_REFERRERS_INSECURE (default: false)
        - OCI_REFERRERS_HTTP_TIMEOUT (default: 30.0)
        - OCI_REFERRERS_HTTP_RETRY (default: 0)
        - DOCKER_CONFIG (optional, directory holding config.json)

    Returns:
        RegistryOptions with validated configuration

    Raises:
        ValueError: If configuration is invalid

    Note:
        Creates a fresh RegistryOptions instance every time (no caching).
    """
    def str_to_bool(value: str) -> bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    username = os.getenv("OCI_REFERRERS_USERNAME")
    password = os.getenv("OCI_REFERRERS_PASSWORD")

    if username or password:
        if not (username and password):
            raise ValueError("OCI_REFERRERS_USERNAME and OCI_REFERRERS_PASSWORD must be set together")
        auth: Union[KeychainAuth, ExplicitAuth] = ExplicitAuth(username=username, password=password)
    else:
        docker_config = os.getenv("DOCKER_CONFIG")
        auth = KeychainAuth(config_path=Path(docker_config) / "config.json" if docker_config else None)

    transport = TransportOptions(
        insecure=str_to_bool(os.getenv("OCI_REFERRERS_INSECURE", "false")),
        timeout_s=get_float("OCI_REFERRERS_HTTP_TIMEOUT", 30.0),
        retries=get_int("OCI_REFERRERS_HTTP_RETRY", 0),
    )

    return RegistryOptions(auth=auth, transport=transport)
