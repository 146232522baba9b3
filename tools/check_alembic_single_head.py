#!/usr/bin/env python
"""CI guard: the migration tree must have exactly one head."""
import sys
from pathlib import Path

from alembic.config import Config
from alembic.script import ScriptDirectory


def find_up(name: str, start: Path) -> Path | None:
    p = start.resolve()
    while True:
        cand = p / name
        if cand.exists():
            return cand
        if p.parent == p:
            return None
        p = p.parent


def main() -> int:
    ini = find_up("alembic.ini", Path(__file__).resolve().parent)
    if not ini:
        print("Error: could not find alembic.ini above", Path(__file__).parent)
        return 1

    cfg = Config(str(ini))
    # script_location in the ini is relative to the ini's directory
    cfg.set_main_option("script_location", str(ini.parent / "alembic"))
    heads = ScriptDirectory.from_config(cfg).get_heads()
    if len(heads) != 1:
        print(f"Error: expected 1 Alembic head, found {len(heads)}: {heads}")
        return 1
    print(f"Alembic head OK: {heads[0]}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
