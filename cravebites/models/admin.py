"""
Admin account model
"""
from sqlalchemy import Column, DateTime, Enum as SQLEnum, Integer, String
from cravebites.db.database import Base, utcnow
import enum


class AdminRole(str, enum.Enum):
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class Admin(Base):
    """Admin model"""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(AdminRole), nullable=False, default=AdminRole.ADMIN)

    # Password reset
    otp = Column(String(6))
    otp_expires_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Admin(id={self.id}, email={self.email}, role={self.role})>"
