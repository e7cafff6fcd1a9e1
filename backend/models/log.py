from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from database import Base

# Audit trail of user actions (logins, cart changes, orders, admin edits)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(50), index=True)
    resource = Column(String(50), index=True)
    status = Column(String(20), index=True)
    ip = Column(String(64), nullable=True)

    # Free-form context for the event
    meta = Column(JSON, nullable=True)
