# Fake implementations for testing

from .fake_oci_registry import FakeOciRegistry

__all__ = ["FakeOciRegistry"]
