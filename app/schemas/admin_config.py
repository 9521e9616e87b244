"""
Admin configuration schemas: pricing rules and payment receivers
"""

from typing import Optional
from pydantic import Field

from app.schemas.base import BaseSchema, IDSchema, TimestampSchema
from app.models.booking import EventType
from app.models.payment import PaymentMethod


class PricingRuleUpsert(BaseSchema):
    base_price: int = Field(..., ge=0)
    per_guest: int = Field(..., ge=0)
    per_hour: int = Field(..., ge=0)
    default_hours: int = Field(..., ge=1)


class PricingRuleResponse(PricingRuleUpsert, IDSchema, TimestampSchema):
    event_type: EventType


class PaymentMethodUpsert(BaseSchema):
    receiver_name: Optional[str] = None
    receiver_phone: Optional[str] = None
    receiver_account_number: Optional[str] = None
    note: Optional[str] = None
    active: Optional[bool] = None


class PaymentMethodResponse(IDSchema, TimestampSchema):
    method: PaymentMethod
    receiver_name: Optional[str] = None
    receiver_phone: Optional[str] = None
    receiver_account_number: Optional[str] = None
    note: Optional[str] = None
    active: bool
