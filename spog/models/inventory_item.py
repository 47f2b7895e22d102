"""
InventoryItem model for tracking SPOG consumables.

Each record is one stocked consumable (a sealant cartridge batch, a paint
tin, a drum of oil) with:
- Its current balance and the amount it was stocked with
- The unit the balance is kept in, and the unit users usually consume in
- A stock status derived from current_balance / original_amount
- Expiry and batch tracking
"""

from datetime import date

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
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
from .enums import StockStatus


class InventoryItem(BaseModel):
    """
    InventoryItem model representing a stocked consumable.

    Status:
    ``status`` is stored for filtering, but it is never set by hand:
    refresh_status() re-derives it whenever current_balance or
    original_amount changes.

    Attributes:
        name: Item name
        description: Free-text description
        category: Sealant, Paint, Oil or Grease
        location_id: Where the item is stored
        current_balance: Amount on hand, in ``unit``
        original_amount: Amount the item was stocked with, in ``unit``
        minimum_quantity: Reorder point, in ``unit``
        unit: Stock unit
        consumption_unit: Default unit for consumption forms
        status: normal / low / critical
        last_consumed_at: Timestamp of the latest consumption
        last_refilled_at: Timestamp of the latest refill
        expiry_date: Shelf-life expiry date
        batch_number: Manufacturer batch/lot number
        created_by: User who created the item
        updated_by: User who last changed the item
    """

    __tablename__ = "inventory_items"

    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, index=True)

    location_id = Column(
        Integer, ForeignKey("locations.id", ondelete="RESTRICT"), nullable=True, index=True
    )

    current_balance = Column(Float, nullable=False, default=0.0)
    original_amount = Column(Float, nullable=False)
    minimum_quantity = Column(Float, nullable=False, default=0.0)
    unit = Column(String(50), nullable=False)
    consumption_unit = Column(String(50), nullable=True)

    status = Column(String(20), nullable=False, default=StockStatus.NORMAL.value, index=True)

    last_consumed_at = Column(DateTime, nullable=True)
    last_refilled_at = Column(DateTime, nullable=True)

    expiry_date = Column(Date, nullable=True, index=True)
    batch_number = Column(String(100), nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    location = relationship("Location", back_populates="items", lazy="joined")
    consumption_records = relationship(
        "ConsumptionRecord",
        back_populates="inventory_item",
        cascade="all, delete-orphan",
        order_by="ConsumptionRecord.recorded_at",
    )

    __table_args__ = (
        CheckConstraint("current_balance >= 0", name="ck_inventory_balance_non_negative"),
        CheckConstraint("original_amount > 0", name="ck_inventory_original_positive"),
        Index("idx_inventory_category_status", "category", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"InventoryItem(id={self.id}, name='{self.name}', "
            f"balance={self.current_balance} {self.unit}, status='{self.status}')"
        )

    def refresh_status(self) -> StockStatus:
        """
        Re-derive ``status`` from the current balance and original amount.

        Returns:
            The new status
        """
        from spog.services.stock_status import classify

        status = classify(self.current_balance or 0.0, self.original_amount or 0.0)
        self.status = status.value
        return status

    @property
    def stock_percentage(self) -> int:
        """Balance as a whole percentage of the original amount."""
        from spog.services.stock_status import stock_percentage

        return stock_percentage(self.current_balance or 0.0, self.original_amount or 0.0)

    @property
    def needs_restock(self) -> bool:
        """True when the balance has reached the reorder point."""
        return (self.current_balance or 0.0) <= (self.minimum_quantity or 0.0)

    @property
    def days_until_expiry(self):
        """
        Days until expiry_date.

        Returns:
            Days (negative once expired), or None if no expiry date
        """
        if not self.expiry_date:
            return None
        return (self.expiry_date - date.today()).days

    @property
    def is_expired(self) -> bool:
        days_left = self.days_until_expiry
        return days_left is not None and days_left <= 0

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert inventory item to dictionary.

        Adds the derived stock_percentage, needs_restock and location_name.
        """
        result = super().to_dict(include_relationships=False)
        result["stock_percentage"] = self.stock_percentage
        result["needs_restock"] = self.needs_restock
        result["location_name"] = self.location.name if self.location else None

        if include_relationships and self.location:
            result["location"] = self.location.to_dict()

        return result
