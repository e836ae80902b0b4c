"""
Error classes for uniload.

Two families of errors come out of a load attempt:
- DiagnosticError (ResolutionError, BuildError): collected as messages
  inside the attempt's capture scope and surfaced once, as LoadFailedError
- Everything else (startup hook failures, package code exceptions):
  propagated unchanged, since they point at a defect in loaded package code

Error handling contract:
- A failed load never returns a partial result
- A failed load never touches the cache
- Retrying is the caller's business
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from uniload.messages import MessageSet


class UniloadError(Exception):
    """Base exception for uniload."""
    pass


class ConfigError(UniloadError):
    """Configuration validation error."""
    pass


class DiagnosticError(UniloadError):
    """
    A problem found while resolving or building a package set.

    Raised (or reported via MessageSet.error) by collaborators running
    inside a capture scope. The capture scope turns it into a Message
    instead of letting it escape.
    """

    kind = "diagnostic"

    def __init__(
        self,
        message: str,
        *,
        package: Optional[str] = None,
        file: Optional[str] = None,
        line: Optional[int] = None,
    ):
        super().__init__(message)
        self.package = package
        self.file = file
        self.line = line


class ResolutionError(DiagnosticError):
    """
    Package set cannot be resolved into a dependency graph.

    Examples:
    - Unknown package or slice
    - Invalid package manifest
    - Dependency cycle
    - Pinned version mismatch
    """

    kind = "resolution"


class BuildError(DiagnosticError):
    """
    Image construction from a resolved graph failed.

    Examples:
    - Slice file missing or unreadable
    - Syntax error in package source
    - Declared export not defined by the package
    """

    kind = "build"


class LoadFailedError(UniloadError):
    """
    Aggregate failure for one load call.

    Carries every message collected during the attempt, so the caller
    sees one failure no matter how many problems were found.
    """

    def __init__(self, messages: "MessageSet"):
        self.messages = messages
        super().__init__(
            "Errors prevented package load:\n" + messages.format_messages()
        )


class HookError(UniloadError):
    """A startup hook raised a diagnostic-type error during drainage."""
    pass


class BootstrapStateError(UniloadError):
    """Illegal bootstrap mode transition."""
    pass
