"""
User model - an author who owns tests.

Accounts are provisioned outside this service; the API only resolves the
bearer token's subject to a row here and scopes every test query to it.
"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import relationship
from testcraft.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()),
                doc="Unique user identifier")
    email = Column(String(255), nullable=False, unique=True,
                   doc="Login email")
    name = Column(Text, nullable=True,
                  doc="Display name")
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    tests = relationship("Test", back_populates="creator")

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
