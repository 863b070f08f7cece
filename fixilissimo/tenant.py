"""
fixilissimo/tenant.py

Tenant guardrails (defense in depth).

Every owner-scoped read goes through the store, which filters on owner_id in
SQL. These helpers double-check the rows that come back so a query that lost
its owner predicate cannot leak another user's data.

- In DEV: print warnings for unsafe access
- In STAGING/PROD: fail fast with a generic server error
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from fixilissimo import config
from fixilissimo.errors import UnavailableError


def require_owner_id(owner_id: Optional[int]) -> int:
    """
    Guardrail: owner-scoped operations need a real user id.

    Raises:
        UnavailableError: in every environment; a missing owner is a server bug,
        and continuing would run an unscoped query.
    """
    if not isinstance(owner_id, int) or isinstance(owner_id, bool) or owner_id < 1:
        print(f"[TENANT] Missing or invalid owner_id: {owner_id!r}")
        raise UnavailableError("Tenant scope missing")
    return owner_id


def assert_rows_scoped(rows: Iterable[Mapping[str, Any]], owner_id: int, label: str = "") -> None:
    """
    Guardrail: every returned row must belong to owner_id.

    Rows without an owner_id column are skipped (child rows scoped through a join).
    """
    mismatches = []
    for index, row in enumerate(rows):
        row_owner = row.get("owner_id")
        if row_owner is not None and row_owner != owner_id:
            mismatches.append({"index": index, "expected": owner_id, "found": row_owner})

    if not mismatches:
        return

    where = f" in {label}" if label else ""
    if config.IS_DEV:
        print(f"[TENANT] Tenant isolation violation{where}: {len(mismatches)} row(s) (DEV warning)")
        print(f"[TENANT][DEV] First mismatches: {mismatches[:3]}")
    else:
        print(f"[TENANT] Tenant isolation violation{where}: {len(mismatches)} row(s) (PRODUCTION - failing fast)")
        raise UnavailableError("Tenant isolation violation detected")


def assert_row_scoped(row: Optional[Mapping[str, Any]], owner_id: int, label: str = "") -> None:
    """Single-row variant of assert_rows_scoped; None (the 404 case) passes."""
    if row is None:
        return
    assert_rows_scoped([row], owner_id, label)


def public(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Copy of a row without tenant bookkeeping columns."""
    return {key: value for key, value in row.items() if key not in ("owner_id", "pk")}


def public_rows(rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    return [public(row) for row in rows]
