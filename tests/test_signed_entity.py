"""
Tests for the static signed entity and simple-signing helpers.
"""
from __future__ import annotations

import base64
import hashlib
import json

import pytest

from oci_referrers.models import parse_manifest
from oci_referrers.signed_entity import (
    SignatureLayer,
    Signatures,
    SignedEntity,
    StaticSignatures,
    StaticSignedEntity,
    signature_layer,
    simple_signing_payload,
)
from oci_referrers.storage.oci_media_types import (
    CERTIFICATE_ANNOTATION,
    CHAIN_ANNOTATION,
    OCI_IMAGE_CONFIG,
    OCI_IMAGE_MANIFEST,
    SIGNATURE_ANNOTATION,
    SIMPLE_SIGNING_MEDIA_TYPE,
)
from oci_referrers.storage.reference import parse_reference

DIGEST = "sha256:" + "c" * 64


class TestSignatureLayer:
    """Test layer digest and descriptor derivation."""

    def test_digest_and_size(self):
        layer = SignatureLayer(payload=b"hello")
        assert layer.digest == "sha256:" + hashlib.sha256(b"hello").hexdigest()
        assert layer.size == 5

    def test_descriptor_omits_empty_annotations(self):
        descriptor = SignatureLayer(payload=b"x").descriptor()
        assert descriptor.media_type == SIMPLE_SIGNING_MEDIA_TYPE
        assert descriptor.annotations is None
        assert "annotations" not in descriptor.to_dict()

    def test_signature_layer_annotations(self):
        layer = signature_layer(b"payload", b"\x00sig", certificate=b"CERT", chain=b"CHAIN")
        assert layer.annotations == {
            SIGNATURE_ANNOTATION: base64.b64encode(b"\x00sig").decode(),
            CERTIFICATE_ANNOTATION: "CERT",
            CHAIN_ANNOTATION: "CHAIN",
        }

    def test_signature_layer_without_certificate(self):
        layer = signature_layer(b"payload", b"sig")
        assert list(layer.annotations) == [SIGNATURE_ANNOTATION]


class TestStaticSignatures:
    """Test the in-memory signature set."""

    def test_satisfies_protocols(self):
        signatures = StaticSignatures([SignatureLayer(payload=b"x")])
        assert isinstance(signatures, Signatures)
        assert isinstance(StaticSignedEntity(signatures), SignedEntity)

    def test_manifest_references_config_and_layers(self):
        layers = [signature_layer(b"one", b"s1"), signature_layer(b"two", b"s2")]
        signatures = StaticSignatures(layers)

        manifest = parse_manifest(signatures.raw_manifest())
        config = signatures.raw_config_file()

        assert manifest["mediaType"] == OCI_IMAGE_MANIFEST
        assert manifest["config"] == {
            "mediaType": OCI_IMAGE_CONFIG,
            "size": len(config),
            "digest": "sha256:" + hashlib.sha256(config).hexdigest(),
        }
        assert [entry["digest"] for entry in manifest["layers"]] == [layer.digest for layer in layers]

    def test_config_lists_layer_digests(self):
        layer = SignatureLayer(payload=b"x")
        config = json.loads(StaticSignatures([layer]).raw_config_file())
        assert config["rootfs"] == {"type": "layers", "diff_ids": [layer.digest]}

    def test_manifest_is_deterministic(self):
        layer = signature_layer(b"payload", b"sig")
        assert StaticSignatures([layer]).raw_manifest() == StaticSignatures([layer]).raw_manifest()

    def test_get_returns_copy(self):
        signatures = StaticSignatures([SignatureLayer(payload=b"x")])
        signatures.get().clear()
        assert len(signatures.get()) == 1


class TestSimpleSigningPayload:
    """Test payload generation."""

    def test_payload_identifies_subject(self):
        ref = parse_reference(f"registry.example/team/app@{DIGEST}")
        payload = json.loads(simple_signing_payload(ref))

        assert payload["critical"]["identity"]["docker-reference"] == "registry.example/team/app"
        assert payload["critical"]["image"]["docker-manifest-digest"] == DIGEST
        assert payload["critical"]["type"] == "cosign container image signature"
        assert payload["optional"] is None

    def test_tag_reference_rejected(self):
        with pytest.raises(ValueError, match="digest reference"):
            simple_signing_payload(parse_reference("registry.example/app:v1"))
