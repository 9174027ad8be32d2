"""Module entrypoint for running Castory as ``python -m castory``."""

from __future__ import annotations

from castory.cli import main


if __name__ == "__main__":
    main()
