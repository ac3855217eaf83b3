from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from ttboard.core.db import get_sessionmaker
from ttboard.core.errors import PersistenceError
from ttboard.repositories.tt_task_repository import TTTaskRepository


def main() -> None:
    parser = argparse.ArgumentParser("Import TT tasks from a dashboard JSON file (tt-tasks.json)")
    parser.add_argument("path", type=Path, help="JSON file: a list, {'ttTasks': [...]} or {'tasks': [...]}")
    args = parser.parse_args()

    if not args.path.exists():
        print(f"[ERROR] File not found: {args.path}", file=sys.stderr)
        sys.exit(1)

    raw = json.loads(args.path.read_text(encoding="utf-8"))

    db = get_sessionmaker()()
    try:
        count = TTTaskRepository(db).import_documents(raw)
    except PersistenceError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()

    print(f"[OK] Imported {count} task(s) from {args.path}")


if __name__ == "__main__":
    main()
