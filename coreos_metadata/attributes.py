from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, TextIO

from .errors import AttributesError
from .providers import Metadata

logger = logging.getLogger(__name__)

PREFIX = "COREOS_"


def _write_variable(out: TextIO, key: str, value: str) -> bool:
    if not value:
        return False
    out.write(f"{PREFIX}{key}={value}\n")
    return True


def write_attributes(path: Optional[str], metadata: Metadata) -> None:
    """Write metadata attributes as ``COREOS_<KEY>=<value>`` lines.

    - path unset: nothing is touched.
    - Empty values are skipped.
    - Keys are sorted so output is stable across runs.
    - The file is truncated and rewritten in place (not temp+rename), so a
      crash mid-write may leave a partial file.
    """

    if not path:
        return

    p = Path(path)
    try:
        p.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as e:
        raise AttributesError(f"failed to create directory {p.parent}: {e}") from e

    written = 0
    try:
        with p.open("w", encoding="utf-8") as out:
            for key in sorted(metadata.attributes):
                if _write_variable(out, key, metadata.attributes[key]):
                    written += 1
            out.flush()
            os.fsync(out.fileno())
    except OSError as e:
        raise AttributesError(f"failed to write {p}: {e}") from e

    logger.info("Wrote %d attribute(s) to %s", written, p)
