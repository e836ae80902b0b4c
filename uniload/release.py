"""Ambient release identifier for the running tool."""

import os
from typing import Optional

from uniload.config import UniloadConfig


RELEASE_ENV_VAR = "UNILOAD_RELEASE"


def current_release(config: Optional[UniloadConfig] = None) -> str:
    """
    The release the host tool is operating under.

    $UNILOAD_RELEASE wins over config.release. Read on every call, so a
    change is seen by the next load.
    """
    override = os.environ.get(RELEASE_ENV_VAR)
    if override:
        return override
    if config is None:
        config = UniloadConfig()
    return config.release
