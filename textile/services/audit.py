from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from textile.db import q, x
from textile.models import EditLogEntry
from textile.utils import iso_now

logger = logging.getLogger(__name__)


def diff_fields(before: Mapping[str, Any], after: Mapping[str, Any]) -> dict:
    changes = {}
    for k, new in after.items():
        old = before[k] if k in before.keys() else None
        if old != new:
            changes[k] = {"old": old, "new": new}
    return changes


def record_changes(conn, entity: str, entity_id: Any, before: Mapping[str, Any], after: Mapping[str, Any]) -> dict:
    """Write one edit_logs row for the fields that actually changed."""
    changes = diff_fields(before, after)
    if changes:
        x(
            conn,
            "INSERT INTO edit_logs (entity, entity_id, changed_at, changes) VALUES (?, ?, ?, ?)",
            (entity, str(entity_id), iso_now(), json.dumps(changes, default=str)),
        )
        logger.info("%s %s changed: %s", entity, entity_id, ", ".join(sorted(changes)))
    return changes


def edit_history(conn, entity: str, entity_id: Any) -> list[EditLogEntry]:
    rows = q(
        conn,
        "SELECT changed_at, changes FROM edit_logs WHERE entity=? AND entity_id=? ORDER BY id DESC",
        (entity, str(entity_id)),
    )
    out: list[EditLogEntry] = []
    for r in rows:
        try:
            changes = json.loads(r["changes"])
        except ValueError:
            logger.warning("Malformed edit log for %s %s", entity, entity_id)
            changes = {}
        out.append(EditLogEntry(changed_at=str(r["changed_at"]), changes=changes))
    return out
