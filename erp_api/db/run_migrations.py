"""
Programmatic Alembic migration runner.

Allows running migrations without an alembic.ini by configuring the script location
to this package's migrations directory.

Usage examples:
    python -m erp_api.db.run_migrations upgrade head
    python -m erp_api.db.run_migrations downgrade -1
    python -m erp_api.db.run_migrations current
"""

import sys
from pathlib import Path
from typing import List

from alembic import command
from alembic.config import Config

from erp_api.db.config import get_settings

_COMMANDS = {
    "upgrade": (command.upgrade, ["head"]),
    "downgrade": (command.downgrade, ["-1"]),
    "history": (command.history, []),
    "current": (command.current, []),
    "heads": (command.heads, []),
}


def build_config() -> Config:
    """Alembic Config pointing at the migrations folder next to this file."""
    cfg = Config()
    cfg.set_main_option("script_location", str(Path(__file__).resolve().parent / "migrations"))
    # Used by offline mode only; env.py builds its own async engine online.
    cfg.set_main_option("sqlalchemy.url", get_settings().database_url)
    return cfg


# PUBLIC_INTERFACE
def main(argv: List[str] | None = None) -> None:
    """Run an Alembic command with programmatic configuration."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        print("No Alembic arguments provided. Example: upgrade head")
        sys.exit(1)

    cmd, other = args[0], args[1:]
    if cmd not in _COMMANDS:
        print(f"Unsupported Alembic command: {cmd}")
        sys.exit(2)

    func, defaults = _COMMANDS[cmd]
    func(build_config(), *(other or defaults))


if __name__ == "__main__":
    main()
