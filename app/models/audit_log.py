"""
Audit trail of state-changing actions
"""

from sqlalchemy import Column, String, ForeignKey, JSON, Uuid

from app.models.base import BaseModel


class AuditLog(BaseModel):
    __tablename__ = "audit_logs"

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True, index=True)
    action = Column(String(64), nullable=False, index=True)
    resource_type = Column(String(64), nullable=False)
    resource_id = Column(String(64))
    ip = Column(String(45))
    user_agent = Column(String(255))
    data = Column(JSON, default=dict)

    def __repr__(self):
        return f"<AuditLog(action={self.action}, resource={self.resource_type}:{self.resource_id})>"
