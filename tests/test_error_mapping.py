"""
Test error mapping and CLI exit code functionality.

Validates that exceptions are correctly mapped to exit codes and that
the run_and_exit wrapper handles errors appropriately for CLI commands.
"""
from __future__ import annotations

import pytest
import typer

from oci_referrers.operations.mappers import EXIT_CODES, exit_code_for, run_and_exit
from oci_referrers.storage.oci_errors import (
    BlobWriteError,
    DigestComputeError,
    ManifestParseError,
    NotFoundError,
    OciAuthError,
    OciDigestMismatch,
    OciRateLimited,
    ReferenceParseError,
    ReferrersUnsupported,
    RegistryError,
    SignatureUnavailableError,
)


class TestExitCodeMapping:
    """Test exception to exit code mapping."""

    @pytest.mark.parametrize("exc,code", [
        (NotFoundError("missing"), 1),
        (ReferenceParseError("bad ref"), 2),
        (ManifestParseError("bad manifest"), 2),
        (ValueError("bad flag"), 2),
        (RegistryError("boom"), 3),
        (SignatureUnavailableError("none"), 4),
        (BlobWriteError("upload failed", digest="sha256:" + "0" * 64), 5),
    ])
    def test_known_exceptions_mapped_correctly(self, exc, code):
        assert exit_code_for(exc) == code

    @pytest.mark.parametrize("exc", [
        OciAuthError("denied", status_code=401),
        OciRateLimited("slow down", status_code=429),
        OciDigestMismatch("mismatch"),
        ReferrersUnsupported("no referrers API", status_code=404),
    ])
    def test_registry_subclasses_map_through_base(self, exc):
        """Test that RegistryError subclasses share the registry exit code."""
        assert exit_code_for(exc) == 3

    def test_unknown_exceptions_use_fallback(self):
        assert exit_code_for(RuntimeError("test")) == 3
        assert exit_code_for(DigestComputeError("test")) == 3
        assert exit_code_for(PermissionError("test")) == 3

    def test_exit_code_constants(self):
        """Test that the table covers every documented code."""
        assert sorted(set(EXIT_CODES.values())) == [1, 2, 3, 4, 5]


class TestRunAndExit:
    """Test the CLI command wrapper."""

    def test_successful_function_returns_result(self):
        assert run_and_exit(lambda: "ok") == "ok"

    def test_exception_converted_to_exit(self, capsys):
        def failing():
            raise SignatureUnavailableError("no signatures for subject")

        with pytest.raises(typer.Exit) as exc_info:
            run_and_exit(failing)

        assert exc_info.value.exit_code == 4
        assert "Error: no signatures for subject" in capsys.readouterr().err

    def test_original_exception_chained(self):
        def failing():
            raise NotFoundError("subject not found")

        with pytest.raises(typer.Exit) as exc_info:
            run_and_exit(failing)
        assert isinstance(exc_info.value.__cause__, NotFoundError)
