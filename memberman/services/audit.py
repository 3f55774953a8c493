"""Audit service - record and query back-office actions."""

import logging

from memberman.models import AuditLog

logger = logging.getLogger(__name__)


def record(
    action: str,
    performed_by: str,
    target_user_ref: str = "",
    details: dict | None = None,
    ip_address: str = "",
    user_agent: str = "",
) -> AuditLog:
    """Append an audit log entry."""
    entry = AuditLog.objects.create(
        action=action,
        performed_by=performed_by,
        target_user_ref=target_user_ref,
        details=details or {},
        ip_address=ip_address[:100],
        user_agent=user_agent[:500],
    )
    logger.info("Audit: %s by %s (target=%s)", action, performed_by, target_user_ref or "-")
    return entry


def recent(limit: int = 50, offset: int = 0, action: str | None = None) -> list[AuditLog]:
    """Most recent entries first, optionally filtered by action."""
    qs = AuditLog.objects.all()
    if action:
        qs = qs.filter(action=action)
    return list(qs[offset : offset + limit])
