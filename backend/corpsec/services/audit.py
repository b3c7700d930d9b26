"""Audit logging service."""
import logging
from datetime import datetime, date, timedelta
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from corpsec.models.audit import AuditLog, AuditAction, ChangeSource

logger = logging.getLogger(__name__)


def _jsonable(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if hasattr(value, "value"):  # str enums
        return value.value
    return value


def create_audit_log(
    db: Session,
    *,
    action: AuditAction,
    entity_type: str,
    entity_id: str | UUID,
    tenant_id: UUID | None = None,
    user_id: UUID | None = None,
    company_id: UUID | None = None,
    entity_name: str | None = None,
    summary: str | None = None,
    change_source: ChangeSource = ChangeSource.MANUAL,
    changes: dict | None = None,
    reason: str | None = None,
    metadata: dict | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditLog:
    """Add an audit entry to the caller's transaction (flushed, not committed)."""
    entry = AuditLog(
        tenant_id=tenant_id,
        user_id=user_id,
        company_id=company_id,
        action=action.value,
        entity_type=entity_type,
        entity_id=str(entity_id),
        entity_name=entity_name,
        summary=summary,
        change_source=change_source.value,
        changes=changes,
        reason=reason,
        meta=metadata,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    db.flush()
    logger.debug(f"Audit {action.value} {entity_type}:{entity_id}")
    return entry


def compute_changes(old: dict, new: dict, fields: list[str] | None = None) -> dict:
    """Field-level {"old", "new"} pairs for values that differ."""
    keys = fields or sorted(set(old) | set(new))
    changes = {}
    for key in keys:
        if key not in new:
            continue
        before = _jsonable(old.get(key))
        after = _jsonable(new.get(key))
        if before != after:
            changes[key] = {"old": before, "new": after}
    return changes


def snapshot(obj, fields: list[str]) -> dict:
    """Read the given attributes off a model instance."""
    return {f: getattr(obj, f) for f in fields}


def log_create(db: Session, entity_type: str, obj, name: str | None = None, **kwargs) -> AuditLog:
    return create_audit_log(
        db,
        action=AuditAction.CREATE,
        entity_type=entity_type,
        entity_id=obj.id,
        entity_name=name,
        summary=kwargs.pop("summary", None) or f"Created {entity_type} {name or obj.id}",
        **kwargs,
    )


def log_update(db: Session, entity_type: str, obj, changes: dict, name: str | None = None, **kwargs) -> AuditLog | None:
    """Log an update; nothing is written when there are no changes."""
    if not changes:
        return None
    return create_audit_log(
        db,
        action=AuditAction.UPDATE,
        entity_type=entity_type,
        entity_id=obj.id,
        entity_name=name,
        changes=changes,
        summary=kwargs.pop("summary", None) or f"Updated {entity_type}: {', '.join(changes)}",
        **kwargs,
    )


def log_delete(db: Session, entity_type: str, obj, name: str | None = None, reason: str | None = None, **kwargs) -> AuditLog:
    return create_audit_log(
        db,
        action=AuditAction.DELETE,
        entity_type=entity_type,
        entity_id=obj.id,
        entity_name=name,
        reason=reason,
        summary=kwargs.pop("summary", None) or f"Deleted {entity_type} {name or obj.id}",
        **kwargs,
    )


def log_restore(db: Session, entity_type: str, obj, name: str | None = None, **kwargs) -> AuditLog:
    return create_audit_log(
        db,
        action=AuditAction.RESTORE,
        entity_type=entity_type,
        entity_id=obj.id,
        entity_name=name,
        summary=kwargs.pop("summary", None) or f"Restored {entity_type} {name or obj.id}",
        **kwargs,
    )


# ============ Queries ============

def get_audit_history(
    db: Session,
    *,
    tenant_id: UUID | None = None,
    company_id: UUID | None = None,
    user_id: UUID | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    action: str | None = None,
    change_source: str | None = None,
    page: int = 1,
    limit: int = 50,
) -> tuple[list[AuditLog], int]:
    """Filtered audit entries, newest first, with total count."""
    query = db.query(AuditLog)
    if tenant_id:
        query = query.filter(AuditLog.tenant_id == tenant_id)
    if company_id:
        query = query.filter(AuditLog.company_id == company_id)
    if user_id:
        query = query.filter(AuditLog.user_id == user_id)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    if entity_id:
        query = query.filter(AuditLog.entity_id == str(entity_id))
    if action:
        query = query.filter(AuditLog.action == action)
    if change_source:
        query = query.filter(AuditLog.change_source == change_source)
    
    total = query.count()
    rows = (
        query.order_by(AuditLog.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return rows, total


def get_tenant_audit_stats(db: Session, tenant_id: UUID | None, days: int = 30) -> dict:
    """Counts by action, entity type and change source over a window."""
    since = datetime.utcnow() - timedelta(days=days)
    
    def grouped(column):
        query = db.query(column, func.count(AuditLog.id)).filter(AuditLog.created_at >= since)
        if tenant_id:
            query = query.filter(AuditLog.tenant_id == tenant_id)
        return {key: count for key, count in query.group_by(column).all()}
    
    by_action = grouped(AuditLog.action)
    return {
        "days": days,
        "total": sum(by_action.values()),
        "by_action": by_action,
        "by_entity_type": grouped(AuditLog.entity_type),
        "by_change_source": grouped(AuditLog.change_source),
    }
