"""
Audit trail writer
"""

from typing import Any, Dict, Optional
from uuid import UUID
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """Adds audit entries to the caller's session; committed with the surrounding transaction"""

    def __init__(self, session: AsyncSession, ip: Optional[str] = None, user_agent: Optional[str] = None):
        self.session = session
        self.ip = ip
        self.user_agent = user_agent

    def record(
        self,
        action: str,
        resource_type: str,
        resource_id: Any = None,
        data: Optional[Dict[str, Any]] = None,
        user_id: Optional[UUID] = None
    ) -> AuditLog:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            ip=self.ip,
            user_agent=(self.user_agent or "")[:255] or None,
            data={key: str(value) if isinstance(value, UUID) else value for key, value in (data or {}).items()},
        )
        self.session.add(entry)
        logger.info(f"Audit {action} on {resource_type}:{entry.resource_id} by {user_id}")
        return entry
