"""Static checks over the Alembic revision files.

Usage:
    python scripts/check_migration_chain.py

Fails when:
- a revision id is duplicated or missing
- a down_revision points at an unknown revision
- the chain does not end in exactly one head
- a table declared by a model has no op.create_table in any revision
"""

from __future__ import annotations

import re
import sys
from pathlib import Path


BACKEND = Path(__file__).resolve().parents[1]
REVISION_RE = re.compile(r'^revision\s*=\s*["\']([^"\']+)["\']', re.MULTILINE)
DOWN_RE = re.compile(r'^down_revision\s*=\s*(.+)$', re.MULTILINE)
CREATE_TABLE_RE = re.compile(r'op\.create_table\(\s*["\']([^"\']+)["\']')
TABLENAME_RE = re.compile(r'__tablename__\s*=\s*["\']([^"\']+)["\']')


def _down_revision(match: re.Match | None) -> str | None:
    if not match:
        return None
    raw = match.group(1).strip()
    if raw[:1] in {"'", '"'} and raw[-1:] == raw[:1]:
        return raw[1:-1]
    return None


def check_chain(files: list[Path]) -> tuple[list[str], list[str]]:
    revisions: dict[str, Path] = {}
    parents: dict[str, str | None] = {}
    errors: list[str] = []

    for file in files:
        source = file.read_text(encoding="utf-8")
        rev_m = REVISION_RE.search(source)
        if not rev_m:
            errors.append(f"{file.name}: missing revision")
            continue
        rev = rev_m.group(1)
        if rev in revisions:
            errors.append(f"Duplicate revision id {rev} in {file.name} and {revisions[rev].name}")
        revisions[rev] = file
        parents[rev] = _down_revision(DOWN_RE.search(source))

    for rev, parent in parents.items():
        if parent is not None and parent not in revisions:
            errors.append(f"Revision {rev} references missing down_revision {parent}")

    referenced = {p for p in parents.values() if p is not None}
    heads = [r for r in revisions if r not in referenced]
    if len(heads) != 1:
        errors.append(f"Expected exactly one head revision, found {len(heads)} ({heads})")
    return heads, errors


def check_table_coverage(files: list[Path], model_files: list[Path]) -> list[str]:
    created = {name for f in files for name in CREATE_TABLE_RE.findall(f.read_text(encoding="utf-8"))}
    declared = {name for f in model_files for name in TABLENAME_RE.findall(f.read_text(encoding="utf-8"))}
    return [f"Model table '{t}' is not created by any migration" for t in sorted(declared - created)]


def main() -> int:
    files = sorted((BACKEND / "alembic" / "versions").glob("*.py"))
    model_files = sorted((BACKEND / "stockledger" / "models").glob("*.py"))

    heads, errors = check_chain(files)
    errors.extend(check_table_coverage(files, model_files))

    print("Migration chain check")
    print(f"- files: {len(files)}")

    if errors:
        for err in errors:
            print(f"[FAIL] {err}")
        return 1

    print(f"[PASS] single head: {heads[0]}")
    print("[PASS] revision/down_revision integrity checks")
    print("[PASS] every model table has a migration")
    return 0


if __name__ == "__main__":
    sys.exit(main())
