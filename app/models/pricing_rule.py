"""
Pricing rule model
"""

from sqlalchemy import Column, Integer, Enum, CheckConstraint

from app.models.base import BaseModel
from app.models.booking import EventType


class PricingRule(BaseModel):
    """
    Admin configured price components for one event type
    """
    __tablename__ = "pricing_rules"

    event_type = Column(Enum(EventType), unique=True, nullable=False)
    base_price = Column(Integer, nullable=False, default=0)
    per_guest = Column(Integer, nullable=False, default=0)
    per_hour = Column(Integer, nullable=False, default=0)
    default_hours = Column(Integer, nullable=False, default=5)

    __table_args__ = (
        CheckConstraint(
            "base_price >= 0 AND per_guest >= 0 AND per_hour >= 0",
            name="ck_pricing_rules_non_negative"
        ),
        CheckConstraint("default_hours >= 1", name="ck_pricing_rules_default_hours"),
    )

    def __repr__(self):
        return f"<PricingRule(event_type={self.event_type}, base_price={self.base_price})>"
