"""
Location model for storage areas.

A location is a named place where SPOG consumables are kept (a store
room, a cabinet, a hangar shelf). Locations may be nested through
parent_id.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .base import BaseModel


class Location(BaseModel):
    """
    Storage location.

    Attributes:
        name: Unique location name
        description: Free-text description
        is_active: Inactive locations are hidden from pickers but kept for history
        parent_id: Optional enclosing location
    """

    __tablename__ = "locations"

    name = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    parent_id = Column(
        Integer, ForeignKey("locations.id", ondelete="SET NULL"), nullable=True, index=True
    )

    parent = relationship("Location", remote_side="Location.id", back_populates="children")
    children = relationship("Location", back_populates="parent")
    items = relationship("InventoryItem", back_populates="location")
