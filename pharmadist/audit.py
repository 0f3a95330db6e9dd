"""
pharmadist/audit.py

Audit logging helpers.

Goals:
- Capture WHO did WHAT to WHICH entity, with BEFORE/AFTER snapshots.
- Store an email snapshot so identity survives a later user rename/delete.

IMPORTANT:
- log_action() only ADDS the AuditLog row to the given session.
  The gateway controls transaction boundaries (commit/rollback), so a rolled back write leaves no audit row.
- The acting user comes from an explicit SessionContext, never from the request globals.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, Optional

from flask import has_request_context, request

from .models import AuditLog

if TYPE_CHECKING:
    from .auth import SessionContext


def _safe_str(value: Any) -> Optional[str]:
    """Decimal/date/datetime all have a stable str(); None stays None."""
    if value is None:
        return None
    return str(value)


def serialize_model(instance: Any) -> Dict[str, Optional[str]]:
    """
    Snapshot of a model's scalar columns (relationships are not followed).
    Values are strings for JSON safety.
    """
    return {column.name: _safe_str(getattr(instance, column.name)) for column in instance.__table__.columns}


def log_action(
    session,
    context: "SessionContext",
    entity: Any,
    action: str,
    *,
    before: Optional[Dict[str, Any]] = None,
    after: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Add an AuditLog entry for entity (must already have an id, i.e. be flushed).

    action: CREATE / UPDATE / DELETE
    """
    entity_id = getattr(entity, "id", None)
    if entity_id is None:
        raise ValueError("log_action entity must have an 'id' attribute (after flush).")

    entry = AuditLog(
        user_id=context.user_id,
        user_email_snapshot=context.email,
        entity_type=entity.__class__.__name__,
        entity_id=int(entity_id),
        action=action,
        before_data=json.dumps(before, ensure_ascii=False) if before else None,
        after_data=json.dumps(after, ensure_ascii=False) if after else None,
        ip_address=request.remote_addr if has_request_context() else None,
    )
    session.add(entry)
    return entry
