"""Tests for uniload error classes.

Tests cover:
- Error hierarchy
- Location fields on diagnostic errors
- Aggregate LoadFailedError message
"""

import pytest
from uniload.errors import (
    UniloadError,
    ConfigError,
    DiagnosticError,
    ResolutionError,
    BuildError,
    LoadFailedError,
    HookError,
    BootstrapStateError,
)
from uniload.messages import MessageSet


class TestHierarchy:
    """Tests for the exception hierarchy."""

    @pytest.mark.parametrize("cls", [
        ConfigError,
        DiagnosticError,
        ResolutionError,
        BuildError,
        LoadFailedError,
        HookError,
        BootstrapStateError,
    ])
    def test_is_uniload_error(self, cls):
        """Every uniload error should be a UniloadError."""
        assert issubclass(cls, UniloadError)

    def test_resolution_and_build_are_diagnostics(self):
        """Resolution and build errors are captured as diagnostics."""
        assert issubclass(ResolutionError, DiagnosticError)
        assert issubclass(BuildError, DiagnosticError)

    def test_hook_error_is_not_diagnostic(self):
        """HookError must escape the capture scope."""
        assert not issubclass(HookError, DiagnosticError)
        assert not issubclass(LoadFailedError, DiagnosticError)


class TestDiagnosticError:
    """Tests for DiagnosticError fields."""

    def test_has_message(self):
        error = ResolutionError("Unknown package: foo")
        assert str(error) == "Unknown package: foo"

    def test_location_fields(self):
        error = BuildError("Syntax error", package="http", file="http.py", line=3)
        assert error.package == "http"
        assert error.file == "http.py"
        assert error.line == 3

    def test_location_defaults_to_none(self):
        error = ResolutionError("boom")
        assert error.package is None
        assert error.file is None
        assert error.line is None

    def test_kind(self):
        assert ResolutionError.kind == "resolution"
        assert BuildError.kind == "build"


class TestLoadFailedError:
    """Tests for the aggregate load error."""

    def test_carries_messages(self):
        messages = MessageSet("loading packages")
        messages.error("Unknown package: a", package="a")
        messages.error("Unknown package: b", package="b")

        error = LoadFailedError(messages)

        assert error.messages is messages
        assert len(error.messages) == 2

    def test_message_lists_every_problem(self):
        messages = MessageSet("loading packages")
        messages.error("Unknown package: a", package="a")
        messages.error("Unknown package: b", package="b")

        text = str(LoadFailedError(messages))

        assert text.startswith("Errors prevented package load:")
        assert "While loading packages:" in text
        assert "a: Unknown package: a" in text
        assert "b: Unknown package: b" in text
