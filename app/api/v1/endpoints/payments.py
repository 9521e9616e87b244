"""
Payment endpoints: proof upload, admin decisions and ticket lookup
"""

from typing import Any, List, Optional
from uuid import UUID
import logging
from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.deps import get_payment_manager
from app.config import settings
from app.core.database import get_session
from app.core.exceptions import EventHallException
from app.core.security import get_current_user, require_admin
from app.models.event import Event
from app.models.payment import Payment, PaymentStatus
from app.models.user import User
from app.schemas.payment import (
    EventTicketResponse,
    PaymentInstructions,
    PaymentResponse,
    ProceedPaymentResponse,
    ProcessPaymentRequest,
    ProcessPaymentResponse,
    ReceiverInfo,
)
from app.services.payment_service import PaymentLifecycleManager, ProofImage

router = APIRouter()
logger = logging.getLogger(__name__)


def qr_not_available() -> EventHallException:
    return EventHallException("QR code not available", code="QR_NOT_AVAILABLE", status_code=404)


async def proceed_payment_response(manager: PaymentLifecycleManager, payment: Payment) -> ProceedPaymentResponse:
    """Payment plus the transfer instructions shown to the payer"""
    receiver = await manager.get_receiver(payment.payment_method)
    instructions = manager.get_instructions(
        payment.payment_method,
        payment.amount,
        payment.phone_number,
        receiver
    )
    return ProceedPaymentResponse(
        payment=PaymentResponse.model_validate(payment),
        instructions=PaymentInstructions.model_validate(instructions),
        receiver=ReceiverInfo.model_validate(receiver) if receiver else None
    )


@router.get("/my-event-tickets", response_model=List[EventTicketResponse])
async def get_my_event_tickets(
    current_user: User = Depends(get_current_user),
    manager: PaymentLifecycleManager = Depends(get_payment_manager),
    db: AsyncSession = Depends(get_session)
) -> Any:
    """
    Ticket purchases of the current user with their events
    """
    payments = await manager.list_event_tickets(current_user)

    event_ids = {payment.event_id for payment in payments}
    events = {}
    if event_ids:
        result = await db.execute(select(Event).where(Event.id.in_(event_ids)))
        events = {event.id: event for event in result.scalars().all()}

    tickets = []
    for payment in payments:
        event = events.get(payment.event_id)
        tickets.append(EventTicketResponse(
            payment=PaymentResponse.model_validate(payment),
            event_title=event.title if event else None,
            event_date=event.event_date if event else None,
            event_time=event.event_time if event else None,
            location=event.location if event else None
        ))
    return tickets


@router.get("/user", response_model=List[PaymentResponse])
async def list_my_payments(
    status: Optional[PaymentStatus] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    manager: PaymentLifecycleManager = Depends(get_payment_manager)
) -> Any:
    """
    Payment history of the current user: booking payments and ticket purchases
    """
    payments = await manager.list_for_user(current_user, status=status, limit=limit, offset=offset)
    return [PaymentResponse.model_validate(payment) for payment in payments]


@router.get("/admin/payments", response_model=List[PaymentResponse])
async def list_payments(
    status: Optional[PaymentStatus] = None,
    kind: Optional[str] = Query(None, pattern="^(booking|event)$"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    admin: User = Depends(require_admin),
    manager: PaymentLifecycleManager = Depends(get_payment_manager)
) -> Any:
    """
    All payments, newest first (admin only)
    """
    payments = await manager.list_payments(status=status, kind=kind, limit=limit, offset=offset)
    return [PaymentResponse.model_validate(payment) for payment in payments]


@router.post("/{payment_id}/proof", response_model=PaymentResponse)
async def upload_proof(
    payment_id: UUID,
    proof: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    manager: PaymentLifecycleManager = Depends(get_payment_manager)
) -> Any:
    """
    Upload the transfer proof image (multipart field ``proof``)
    """
    image = None
    if proof is not None:
        image = ProofImage(
            filename=proof.filename,
            content_type=proof.content_type,
            # One byte past the limit is enough to reject it
            data=await proof.read(settings.MAX_UPLOAD_SIZE_BYTES + 1)
        )

    payment = await manager.upload_proof(payment_id, image, current_user)
    return PaymentResponse.model_validate(payment)


@router.post("/{payment_id}/process", response_model=ProcessPaymentResponse)
async def process_payment(
    payment_id: UUID,
    body: Optional[ProcessPaymentRequest] = None,
    admin: User = Depends(require_admin),
    manager: PaymentLifecycleManager = Depends(get_payment_manager)
) -> Any:
    """
    Approve (``simulateSuccess: true``) or reject a pending payment (admin only)
    """
    approve = body.simulate_success if body is not None else True
    payment = await manager.process_payment(payment_id, approve, admin)
    return ProcessPaymentResponse(
        simulate_success=approve,
        status=payment.status,
        payment=PaymentResponse.model_validate(payment)
    )


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: UUID,
    current_user: User = Depends(get_current_user),
    manager: PaymentLifecycleManager = Depends(get_payment_manager)
) -> Any:
    payment = await manager.get_payment(payment_id)
    await manager.ensure_can_view(payment, current_user)
    return PaymentResponse.model_validate(payment)


@router.get("/{payment_id}/qr")
async def get_payment_qr(
    payment_id: UUID,
    current_user: User = Depends(get_current_user),
    manager: PaymentLifecycleManager = Depends(get_payment_manager)
) -> Any:
    """
    Ticket QR code of a completed payment
    """
    payment = await manager.get_payment(payment_id)
    await manager.ensure_can_view(payment, current_user)
    if not payment.qr_code_url:
        raise qr_not_available()

    return {
        "qrCodeUrl": payment.qr_code_url,
        "transactionId": payment.transaction_id,
        "amount": payment.amount,
        "status": payment.status.value
    }
