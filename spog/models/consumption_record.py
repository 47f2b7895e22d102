"""
ConsumptionRecord model.

One row per consumption event: who took how much of which item, in which
unit, and what that amounted to in the item's stock unit.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from spog.utils.datetime_utils import utc_now


class ConsumptionRecord(BaseModel):
    """
    Consumption event.

    Attributes:
        inventory_item_id: Item consumed from
        user_id: User who recorded the consumption
        quantity: Amount consumed, in ``unit`` (always > 0)
        unit: Unit the user entered
        quantity_in_stock_unit: ``quantity`` converted into the item's unit
        notes: Free-text notes (job card, aircraft, reason)
        recorded_at: When the consumption happened
    """

    __tablename__ = "consumption_records"

    inventory_item_id = Column(
        Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    quantity = Column(Float, nullable=False)
    unit = Column(String(50), nullable=False)
    quantity_in_stock_unit = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)
    recorded_at = Column(DateTime, nullable=False, default=utc_now, index=True)

    inventory_item = relationship(
        "InventoryItem", back_populates="consumption_records", lazy="joined"
    )
    user = relationship("User", lazy="joined")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_consumption_quantity_positive"),
        Index("idx_consumption_item_recorded", "inventory_item_id", "recorded_at"),
    )

    def __repr__(self) -> str:
        return (
            f"ConsumptionRecord(id={self.id}, item_id={self.inventory_item_id}, "
            f"quantity={self.quantity} {self.unit})"
        )

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert record to dictionary.

        Always includes the item name/category/unit and the user's name so
        list views need no extra lookups.
        """
        result = super().to_dict(include_relationships=False)

        item = self.inventory_item
        result["item_name"] = item.name if item else None
        result["item_category"] = item.category if item else None
        result["stock_unit"] = item.unit if item else None
        result["user_name"] = self.user.full_name if self.user else None

        if include_relationships and item:
            result["inventory_item"] = item.to_dict()

        return result
