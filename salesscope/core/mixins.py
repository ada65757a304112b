import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime


def generate_id() -> str:
    return uuid.uuid4().hex


class TimestampMixin:
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow,
                        onupdate=datetime.utcnow, nullable=False)

