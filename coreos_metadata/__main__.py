from __future__ import annotations

from coreos_metadata.main import main

if __name__ == "__main__":
    raise SystemExit(main())
