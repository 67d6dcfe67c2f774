"""Root pytest configuration for oci-referrers tests."""
import json

import pytest

from oci_referrers.signed_entity import StaticSignatures, StaticSignedEntity, signature_layer
from oci_referrers.storage.oci_media_types import OCI_IMAGE_MANIFEST
from oci_referrers.storage.reference import Repository

from .storage.fakes.fake_oci_registry import FakeOciRegistry

SUBJECT_REPO = Repository(registry="registry.example", path="repo")

SUBJECT_MANIFEST = json.dumps({
    "schemaVersion": 2,
    "mediaType": OCI_IMAGE_MANIFEST,
    "config": {
        "mediaType": "application/vnd.oci.image.config.v1+json",
        "size": 2,
        "digest": "sha256:44136fa355b3678a1146ad16f7e8649e94fb4fc21fe77e8310c060f61caaff8a",
    },
    "layers": [],
}, separators=(",", ":")).encode()


# Set up test environment variables
@pytest.fixture(autouse=True)
def test_env(monkeypatch, tmp_path):
    """Isolate tests from the host's registry configuration."""
    for key in (
        "OCI_REFERRERS_USERNAME",
        "OCI_REFERRERS_PASSWORD",
        "OCI_REFERRERS_INSECURE",
        "OCI_REFERRERS_HTTP_TIMEOUT",
        "OCI_REFERRERS_HTTP_RETRY",
        "OCI_REGISTRY_IMPL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("DOCKER_CONFIG", str(tmp_path / "docker"))


@pytest.fixture
def registry():
    """Standard fake registry for testing."""
    return FakeOciRegistry()


@pytest.fixture
def subject_digest(registry):
    """Digest of a subject image manifest seeded into the fake registry."""
    return registry.seed_manifest(SUBJECT_REPO, SUBJECT_MANIFEST, OCI_IMAGE_MANIFEST, tag="v1")


@pytest.fixture
def subject(subject_digest):
    """Digest reference string for the seeded subject."""
    return f"registry.example/repo@{subject_digest}"


@pytest.fixture
def signed_entity():
    """Signed entity with one simple-signing layer."""
    layer = signature_layer(b'{"critical":{}}', b"signature-bytes")
    return StaticSignedEntity(StaticSignatures([layer]))
