"""
Environment - the execution context injected into a package image.

A fresh Environment is built for every cache miss and never reused.
It holds two namespaces:
- bootstrap: startup hook queue plus the BUFFERING/LIVE mode
- runtime_config: a fixed context tag marking a non-interactive load
  (as opposed to a server request context)

Bootstrap lifecycle:
    BUFFERING --go_live()--> LIVE

While BUFFERING, register_hook() queues the hook. The orchestrator drains
the queue after the image has run, then calls go_live(). From then on
register_hook() calls the hook immediately. LIVE is terminal.
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from uniload.errors import BootstrapStateError


CONTEXT_TAG = "non-interactive-load"

Hook = Callable[[], Any]


class BootstrapMode(str, Enum):
    """Whether startup hooks are queued or run on registration."""
    BUFFERING = "buffering"
    LIVE = "live"


class Bootstrap:
    """Startup hook queue with a one-way BUFFERING -> LIVE transition."""

    def __init__(self) -> None:
        self.hook_queue: deque[Hook] = deque()
        self._mode = BootstrapMode.BUFFERING

    @property
    def mode(self) -> BootstrapMode:
        return self._mode

    @property
    def is_live(self) -> bool:
        return self._mode is BootstrapMode.LIVE

    def register_hook(self, hook: Hook) -> None:
        """
        Register a startup hook.

        Queued while BUFFERING, called immediately while LIVE.
        Package code sees this function as `startup`.
        """
        if self._mode is BootstrapMode.BUFFERING:
            self.hook_queue.append(hook)
        else:
            hook()

    def drain(self) -> int:
        """
        Run queued hooks in FIFO order until the queue is empty.

        Hooks registered by a running hook are appended and run in the
        same drain. If a hook raises, drainage stops and the exception
        propagates; hooks not yet run stay queued.

        Returns:
            Number of hooks run
        """
        count = 0
        while self.hook_queue:
            hook = self.hook_queue.popleft()
            hook()
            count += 1
        return count

    def go_live(self) -> None:
        """Switch to LIVE. Raises BootstrapStateError if already LIVE."""
        if self._mode is BootstrapMode.LIVE:
            raise BootstrapStateError("bootstrap is already live")
        self._mode = BootstrapMode.LIVE

    def __repr__(self) -> str:
        return f"Bootstrap(mode={self._mode.value}, queued={len(self.hook_queue)})"


@dataclass(frozen=True)
class RuntimeConfig:
    """Config namespace visible to package code."""
    context_tag: str = CONTEXT_TAG


@dataclass
class Environment:
    """Execution context handed to Image.load()."""
    bootstrap: Bootstrap = field(default_factory=Bootstrap)
    runtime_config: RuntimeConfig = field(default_factory=RuntimeConfig)


def build_environment() -> Environment:
    """Build a fresh Environment in BUFFERING mode with an empty hook queue."""
    return Environment(bootstrap=Bootstrap(), runtime_config=RuntimeConfig())
