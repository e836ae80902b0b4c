"""
Diagnostic collection for a single load attempt.

capture() wraps one attempt in an all-or-nothing scope:
- The body receives the MessageSet and reports problems with error()
- A DiagnosticError escaping the body becomes a message and ends the body
- Any other exception propagates unchanged

The caller checks has_messages() before committing anything.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from uniload.errors import DiagnosticError


@dataclass(frozen=True)
class Message:
    """One diagnostic reported during a load attempt."""
    text: str
    kind: str = "diagnostic"
    package: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None

    @classmethod
    def from_error(cls, error: DiagnosticError) -> "Message":
        return cls(
            text=str(error),
            kind=error.kind,
            package=error.package,
            file=error.file,
            line=error.line,
        )

    def format(self) -> str:
        """Format as a single human-readable line."""
        if self.file is not None:
            location = self.file if self.line is None else f"{self.file}:{self.line}"
            return f"{location}: {self.text}"
        if self.package is not None:
            return f"{self.package}: {self.text}"
        return self.text


class MessageSet:
    """Ordered messages collected during exactly one attempt."""

    def __init__(self, title: str):
        self.title = title
        self._messages: list[Message] = []

    def error(
        self,
        text: str,
        *,
        kind: str = "diagnostic",
        package: Optional[str] = None,
        file: Optional[str] = None,
        line: Optional[int] = None,
    ) -> None:
        """Record a problem without interrupting the caller."""
        self._messages.append(
            Message(text=text, kind=kind, package=package, file=file, line=line)
        )

    def add(self, message: Message) -> None:
        self._messages.append(message)

    def add_error(self, error: DiagnosticError) -> None:
        self._messages.append(Message.from_error(error))

    def has_messages(self) -> bool:
        return bool(self._messages)

    def format_messages(self) -> str:
        """
        Format all messages for display.

        Returns:
            "While <title>:" followed by one indented line per message,
            or an empty string when nothing was reported.
        """
        if not self._messages:
            return ""
        lines = [f"While {self.title}:"]
        lines.extend(f"  {m.format()}" for m in self._messages)
        return "\n".join(lines) + "\n"

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"MessageSet(title={self.title!r}, messages={len(self._messages)})"


def capture(title: str, body: Callable[[MessageSet], None]) -> MessageSet:
    """
    Run body inside a fresh diagnostic scope.

    Args:
        title: What the attempt is doing (used in formatted output)
        body: Callable receiving the MessageSet to report into

    Returns:
        The MessageSet, empty if the body succeeded cleanly

    Raises:
        Exception: Anything the body raises that is not a DiagnosticError
    """
    messages = MessageSet(title)
    try:
        body(messages)
    except DiagnosticError as e:
        messages.add_error(e)
    return messages
