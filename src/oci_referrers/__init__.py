"""
oci-referrers: publish signatures into OCI registries as OCI 1.1 referrers.
"""
from .publisher import artifact_type, list_referrers, publish_signature_referrer
from .settings import DEFAULT_OPTIONS, ExplicitAuth, KeychainAuth, RegistryOptions, TransportOptions

__version__ = "0.1.0"

__all__ = [
    "artifact_type",
    "list_referrers",
    "publish_signature_referrer",
    "DEFAULT_OPTIONS",
    "ExplicitAuth",
    "KeychainAuth",
    "RegistryOptions",
    "TransportOptions",
]
