"""Launch the game: ``python -m simon_game`` or the ``simon-game`` script."""

from __future__ import annotations

import sys
from pathlib import Path

if not __package__:
    # Started as a plain file path; make the checkout importable.
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from simon_game.app import run


def main() -> int:
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
