"""Development entrypoint for the Sovereign world tick runner."""

from __future__ import annotations

from sovereign.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
