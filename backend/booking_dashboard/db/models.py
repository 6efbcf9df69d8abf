from sqlalchemy import Column, String, DateTime
from datetime import datetime, timezone
from .session import Base
import uuid


def gen_uuid():
    return str(uuid.uuid4())

class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=gen_uuid)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    timezone = Column(String, nullable=False, default="UTC")
    # Nylas grant: authorized connection to the user's calendar account
    grant_id = Column(String, nullable=True, unique=True)
    grant_email = Column(String, nullable=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
