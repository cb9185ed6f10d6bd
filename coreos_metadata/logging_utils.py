from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional


def configure_logging(
    log_path: Optional[str] = None,
    level: int = logging.INFO,
) -> None:
    """Configure root logging.

    Notes:
    - Messages always go to stderr; this is how failures reach the operator
      at boot (journal).
    - log_path additionally mirrors everything into a file. Its directory is
      created if needed; failing to open it is a hard error.
    - Calling this more than once only adjusts the level.
    """

    root = logging.getLogger()
    root.setLevel(level)

    if getattr(root, "_coreos_metadata_configured", False):
        return

    fmt = logging.Formatter(fmt="%(levelname)s %(name)s: %(message)s")

    handlers: list[logging.Handler] = []

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    handlers.append(console)

    if log_path:
        Path(os.path.dirname(log_path) or ".").mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S%z",
            )
        )
        handlers.append(file_handler)

    for h in handlers:
        root.addHandler(h)

    setattr(root, "_coreos_metadata_configured", True)

    logging.getLogger(__name__).debug("Logging initialized (log_path=%s)", log_path)
