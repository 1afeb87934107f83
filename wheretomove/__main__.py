from __future__ import annotations

from .app import run


def main() -> int:
    """Entry point for ``python -m wheretomove`` and the ``where-to-move`` script."""
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
