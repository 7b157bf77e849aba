# kickstart/db/seed_indexes.py
"""
Idempotent index seeding for KickStartX.

- Uses get_collection() (no direct client here).
- Matching by KEYS: if an index with the same keys exists, keep it when options match,
  otherwise drop & recreate it.
- Every query of the core is scoped by `owner_id`, hence the compound indexes.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING
from pymongo.operations import IndexModel

from kickstart.db.mongodb import get_collection
from kickstart.shared.constants import SESSION_LOGS_COLLECTION, TASKS_COLLECTION

KeySpec = List[Tuple[str, int]]


def _normalize_key(key_doc: Dict[str, Any]) -> KeySpec:
    return [(k, int(v)) for k, v in key_doc.items()]


async def _find_existing_by_keys(coll, keys: KeySpec) -> Optional[Dict[str, Any]]:
    async for ix in coll.list_indexes():
        if "key" in ix and _normalize_key(ix["key"]) == keys:
            return ix
    return None


async def ensure_index(coll_name: str, keys: KeySpec, *, name: Optional[str] = None,
                       unique: Optional[bool] = None) -> None:
    coll = get_collection(coll_name)
    existing = await _find_existing_by_keys(coll, keys)
    if existing and bool(existing.get("unique", False)) == bool(unique):
        return
    if existing:
        await coll.drop_index(existing["name"])
    opts: Dict[str, Any] = {}
    if name:
        opts["name"] = name
    if unique is not None:
        opts["unique"] = unique
    await coll.create_indexes([IndexModel(keys, **opts)])


async def ensure_indexes() -> None:
    # ---------- tasks ----------
    # Liste du tableau de bord : tâches d'un propriétaire, plus récentes d'abord
    await ensure_index(TASKS_COLLECTION, [("owner_id", ASCENDING), ("created_at", DESCENDING)],
                       name="ix_tasks__owner_created")
    await ensure_index(TASKS_COLLECTION, [("owner_id", ASCENDING), ("next_study_date", ASCENDING)],
                       name="ix_tasks__owner_next_study")

    # ---------- session_logs ----------
    await ensure_index(SESSION_LOGS_COLLECTION, [("owner_id", ASCENDING), ("completed_at", DESCENDING)],
                       name="ix_session_logs__owner_completed")
    await ensure_index(SESSION_LOGS_COLLECTION, [("task_id", ASCENDING)])
