"""
Registry factory with implementation switching.

Provides a single factory function that can create different OCI registry
implementations based on environment configuration, without changing
call sites.
"""
from __future__ import annotations

import os
from typing import Optional

from ..settings import DEFAULT_OPTIONS, RegistryOptions
from .hybrid_oci_registry import HybridOciRegistry
from .oci_registry import OciRegistry


def make_registry(options: Optional[RegistryOptions] = None) -> OciRegistry:
    """
    Create an OCI registry implementation based on environment configuration.

    Args:
        options: Registry options (DEFAULT_OPTIONS when None)

    Returns:
        OCI registry implementation

    Environment Variables:
        OCI_REGISTRY_IMPL: Implementation to use
            - "hybrid" (default): HybridOciRegistry (HTTP for manifests, SDK for blobs)
            - "http": HttpOciRegistry (pure HTTP - not yet implemented)

    Raises:
        ValueError: If OCI_REGISTRY_IMPL specifies unknown implementation
        NotImplementedError: If implementation is not yet available
    """
    impl_type = os.getenv("OCI_REGISTRY_IMPL", "hybrid").lower()

    if impl_type == "hybrid":
        return HybridOciRegistry(options or DEFAULT_OPTIONS)
    elif impl_type == "http":
        # TODO: implement pure-HTTP blob uploads (monolithic POST/PUT) so ORAS becomes optional
        raise NotImplementedError(
            "Pure HTTP implementation (HttpOciRegistry) not yet implemented. "
            "Use 'hybrid' for now."
        )
    else:
        raise ValueError(
            f"Unknown OCI_REGISTRY_IMPL: {impl_type}. "
            f"Supported values: hybrid, http"
        )


__all__ = ["make_registry"]
