"""
Booking price calculation
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Awaitable, Callable, Dict, Mapping, Optional
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.models.booking import EventType
from app.models.pricing_rule import PricingRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PriceComponents:
    base_price: int
    per_guest: int = 0
    per_hour: int = 0
    default_hours: int = 5


@dataclass(frozen=True)
class PriceQuote:
    event_type: EventType
    guest_count: int
    base_price: int
    per_guest: int
    per_hour: int
    used_hours: int
    total_price: int


DEFAULT_PRICING: Dict[EventType, PriceComponents] = {
    EventType.WEDDING: PriceComponents(base_price=20000),
    EventType.BIRTHDAY: PriceComponents(base_price=10000),
    EventType.CORPORATE: PriceComponents(base_price=15000),
    EventType.OTHER: PriceComponents(base_price=12000),
}

FALLBACK_HOURS = 5


def _event_type(value) -> EventType:
    try:
        return EventType(value)
    except ValueError:
        raise ValidationError(f"Unknown event type: {value}", field="eventType")


def calculate_price(
    event_type,
    guest_count: int,
    duration_hours: Optional[int] = None,
    rule: Optional[PriceComponents] = None,
    defaults: Mapping[EventType, PriceComponents] = DEFAULT_PRICING
) -> PriceQuote:
    """
    Price a booking.

    Components come from ``rule`` when given, otherwise from ``defaults``.
    A missing or zero ``duration_hours`` falls back to the rule's default
    hours. ``total = base + guests * per_guest + hours * per_hour``, rounded
    half up to a whole amount.
    """
    event_type = _event_type(event_type)
    if guest_count is None or guest_count < 1:
        raise ValidationError("Guest count must be at least 1", field="guestCount")
    if duration_hours is not None and duration_hours < 0:
        raise ValidationError("Duration cannot be negative", field="durationHours")

    components = rule or defaults.get(event_type)
    if components is None:
        raise ValidationError(f"No pricing configured for {event_type.value}", field="eventType")

    used_hours = duration_hours or components.default_hours or FALLBACK_HOURS

    total = (
        Decimal(components.base_price)
        + Decimal(guest_count) * Decimal(components.per_guest)
        + Decimal(used_hours) * Decimal(components.per_hour)
    )

    return PriceQuote(
        event_type=event_type,
        guest_count=guest_count,
        base_price=components.base_price,
        per_guest=components.per_guest,
        per_hour=components.per_hour,
        used_hours=used_hours,
        total_price=int(total.quantize(Decimal("1"), rounding=ROUND_HALF_UP)),
    )


RuleLookup = Callable[[EventType], Awaitable[Optional[PriceComponents]]]


class PricingRuleResolver:
    """
    Quotes prices using admin configured rules, falling back to defaults
    for event types with no rule
    """

    def __init__(self, rule_lookup: RuleLookup, defaults: Mapping[EventType, PriceComponents] = DEFAULT_PRICING):
        self.rule_lookup = rule_lookup
        self.defaults = defaults

    @classmethod
    def from_session(cls, session: AsyncSession) -> "PricingRuleResolver":
        async def lookup(event_type: EventType) -> Optional[PriceComponents]:
            result = await session.execute(
                select(PricingRule).where(PricingRule.event_type == event_type)
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None
            return PriceComponents(
                base_price=row.base_price,
                per_guest=row.per_guest,
                per_hour=row.per_hour,
                default_hours=row.default_hours,
            )

        return cls(lookup)

    async def quote(self, event_type, guest_count: int, duration_hours: Optional[int] = None) -> PriceQuote:
        event_type = _event_type(event_type)
        rule = await self.rule_lookup(event_type)
        quote = calculate_price(event_type, guest_count, duration_hours, rule=rule, defaults=self.defaults)
        logger.debug(f"Quoted {quote.total_price} for {event_type.value} ({'rule' if rule else 'default'})")
        return quote
