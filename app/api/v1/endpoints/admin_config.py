"""
Admin configuration: pricing rules per event type and payment receivers
"""

from typing import Any, List
import logging
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_audit
from app.core.database import get_session, db_manager
from app.core.security import require_admin
from app.models.booking import EventType
from app.models.payment import normalize_payment_method
from app.models.payment_method_config import PaymentMethodConfig
from app.models.pricing_rule import PricingRule
from app.models.user import User
from app.schemas.admin_config import (
    PaymentMethodResponse,
    PaymentMethodUpsert,
    PricingRuleResponse,
    PricingRuleUpsert,
)
from app.services.audit_service import AuditService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/pricing-rules", response_model=List[PricingRuleResponse])
async def list_pricing_rules(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    result = await db.execute(select(PricingRule).order_by(PricingRule.event_type))
    return [PricingRuleResponse.model_validate(rule) for rule in result.scalars().all()]


@router.put("/pricing-rules/{event_type}", response_model=PricingRuleResponse)
async def upsert_pricing_rule(
    event_type: EventType,
    rule_data: PricingRuleUpsert,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    audit: AuditService = Depends(get_audit)
) -> Any:
    """
    Create or replace the pricing rule of an event type (admin only)
    """
    async with db_manager.transaction(db):
        result = await db.execute(select(PricingRule).where(PricingRule.event_type == event_type))
        rule = result.scalar_one_or_none()
        if rule is None:
            rule = PricingRule(event_type=event_type)
            db.add(rule)

        rule.base_price = rule_data.base_price
        rule.per_guest = rule_data.per_guest
        rule.per_hour = rule_data.per_hour
        rule.default_hours = rule_data.default_hours
        await db.flush()

        audit.record(
            "upsert_pricing_rule",
            "pricing_rule",
            rule.id,
            {"event_type": event_type.value, **rule_data.model_dump()},
            user_id=admin.id
        )

    logger.info(f"Pricing rule for {event_type.value} updated by {admin.id}")
    return PricingRuleResponse.model_validate(rule)


@router.get("/payment-methods", response_model=List[PaymentMethodResponse])
async def list_payment_methods(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session)
) -> Any:
    result = await db.execute(select(PaymentMethodConfig).order_by(PaymentMethodConfig.method))
    return [PaymentMethodResponse.model_validate(config) for config in result.scalars().all()]


@router.put("/payment-methods/{method}", response_model=PaymentMethodResponse)
async def upsert_payment_method(
    method: str,
    config_data: PaymentMethodUpsert,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
    audit: AuditService = Depends(get_audit)
) -> Any:
    """
    Create or update the receiver shown for a payment channel (admin only)
    """
    payment_method = normalize_payment_method(method)

    async with db_manager.transaction(db):
        result = await db.execute(
            select(PaymentMethodConfig).where(PaymentMethodConfig.method == payment_method)
        )
        config = result.scalar_one_or_none()
        if config is None:
            config = PaymentMethodConfig(method=payment_method, active=True)
            db.add(config)

        changes = config_data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if field == "active" and value is None:
                continue
            setattr(config, field, value)
        await db.flush()

        audit.record(
            "upsert_payment_method",
            "payment_method_config",
            config.id,
            {"method": payment_method.value, **changes},
            user_id=admin.id
        )

    logger.info(f"Payment method {payment_method.value} updated by {admin.id}")
    return PaymentMethodResponse.model_validate(config)
