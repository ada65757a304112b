# salesscope/modules/organizations/models/organization_models.py

from sqlalchemy import Column, String, ForeignKey
from sqlalchemy.orm import relationship

from salesscope.core.database import Base
from salesscope.core.mixins import TimestampMixin, generate_id


class Organization(Base, TimestampMixin):
    """A tenant. Owns users and datasets."""
    __tablename__ = "organizations"

    id = Column(String(32), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)

    users = relationship("User", back_populates="organization")


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=generate_id)
    organization_id = Column(
        String(32), ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False, index=True
    )
    email = Column(String(255), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=True)

    organization = relationship("Organization", back_populates="users")
