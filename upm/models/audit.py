from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base


class AuditAction:
    LOGIN = "LOGIN"
    LOGIN_FAILED = "LOGIN_FAILED"

    ALL = [LOGIN, LOGIN_FAILED]


class AuditLog(Base):
    """Append-only login audit trail. Rows are never updated."""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    user_id = Column(Integer, ForeignKey("persons.id"), nullable=False, index=True)
    user_role = Column(String(20), nullable=False)
    action_type = Column(String(20), nullable=False)
    ip_address = Column(String(45), nullable=False, default="unknown")

    user = relationship("Person")

    @property
    def user_name(self):
        return self.user.name if self.user else None
