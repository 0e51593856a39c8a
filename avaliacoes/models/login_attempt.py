from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from avaliacoes.database import Base


class LoginAttempt(Base):
    __tablename__ = "login_attempts"

    id = Column(Integer, primary_key=True, index=True)
    ip_address = Column(String(45), nullable=False, index=True)
    email = Column(String(255), nullable=True, index=True)
    success = Column(Boolean, nullable=False, default=False)
    attempted_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    user_agent = Column(Text, nullable=True)
