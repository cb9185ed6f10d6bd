from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Paths:
    cmdline: str = "/proc/cmdline"


PATHS = Paths()
