from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from .env import PATHS
from .errors import ConfigError

logger = logging.getLogger(__name__)

OEM_FLAG = "coreos.oem.id"


def parse_cmdline(cmdline: str, flag: str = OEM_FLAG) -> str:
    """Return the value of the last ``flag=value`` token in a kernel cmdline.

    Tokens that are not ``flag`` are ignored. A bare ``flag`` (no ``=``)
    records an empty value. Returns "" when the flag never appears.
    """

    value = ""
    for arg in cmdline.split(" "):
        key, sep, val = arg.strip().partition("=")
        if key != flag:
            continue
        value = val if sep else ""
    return value


def read_cmdline(path: Optional[str] = None) -> str:
    """Read the provider id from the boot parameters file."""

    p = Path(path or PATHS.cmdline)
    try:
        raw = p.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise ConfigError(f"could not read cmdline: {e}") from e

    oem = parse_cmdline(raw)
    logger.debug("Read %s=%r from %s", OEM_FLAG, oem, p)
    return oem
