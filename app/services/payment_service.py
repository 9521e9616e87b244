"""
Payment lifecycle for manual transfers

A payment is created pending, collects a proof image from the payer and
is then approved or rejected by an admin. Approval issues the QR ticket.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple
from uuid import UUID
import logging
import secrets

from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.database import db_manager
from app.core.exceptions import (
    AlreadyPaidError,
    AlreadyProcessedError,
    AuthorizationError,
    InvalidStateError,
    NotFoundError,
    ProofMissingError,
    SoldOutError,
    ValidationError,
)
from app.core.metrics import PAYMENTS_CREATED, PAYMENT_DECISIONS, SOLD_OUT_REJECTIONS
from app.core.storage import LocalFileStorage, get_storage
from app.models.base import utcnow
from app.models.booking import Booking, BookingStatus, BookingPaymentStatus
from app.models.event import Event
from app.models.notification import NotificationType
from app.models.payment import (
    ACTIVE_PAYMENT_STATUSES,
    EventTicketTarget,
    Payment,
    PaymentMethod,
    PaymentStatus,
    normalize_payment_method,
)
from app.models.payment_method_config import PaymentMethodConfig
from app.models.user import User
from app.services.audit_service import AuditService
from app.services.inventory_service import InventoryCounter
from app.services.notification_service import ADMINS, NotificationService
from app.services.ticket_service import TicketIssuer

logger = logging.getLogger(__name__)

PROOF_FOLDER = "payments"

# A booking in one of these states may start a new payment
PAYABLE_BOOKING_STATES = (
    BookingPaymentStatus.UNPAID,
    BookingPaymentStatus.FAILED,
    BookingPaymentStatus.REFUNDED,
)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@dataclass
class ProofImage:
    """Uploaded proof of transfer"""
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes


def generate_transaction_id() -> str:
    return secrets.token_hex(settings.TRANSACTION_ID_BYTES).upper()


def _recipient_step(phone_number: Optional[str]) -> str:
    return f"Enter phone number: {phone_number}" if phone_number else "Enter recipient number"


def _instruction_template(method: Optional[PaymentMethod], amount: int, phone_number: Optional[str]) -> Dict[str, Any]:
    currency = settings.DEFAULT_CURRENCY
    if method == PaymentMethod.TELEBIRR:
        return {
            "title": "Telebirr Payment Instructions",
            "steps": [
                "Open your Telebirr app",
                'Go to "Send Money"',
                f"Enter amount: {amount} {currency}",
                _recipient_step(phone_number),
                'Add note: "Event Booking Payment"',
                "Confirm and complete payment",
            ],
            "note": "Upload a screenshot of the confirmation as payment proof.",
        }
    if method == PaymentMethod.CBE:
        return {
            "title": "CBE Birr Payment Instructions",
            "steps": [
                "Dial *847# on your phone",
                'Select "Send Money"',
                f"Enter amount: {amount} {currency}",
                _recipient_step(phone_number),
                "Confirm transaction with your PIN",
            ],
            "note": "Keep the transaction reference for verification.",
        }
    if method == PaymentMethod.ABISINIYA:
        return {
            "title": "Abyssinia Bank Payment Instructions",
            "steps": [
                "Visit Abyssinia Bank branch or use internet banking",
                "Make deposit to account: 1234567890",
                f"Amount: {amount} {currency}",
                "Use your phone number as reference",
            ],
            "note": "Upload the deposit slip as payment proof.",
        }
    if method == PaymentMethod.COMMERCIAL:
        return {
            "title": "Commercial Bank Payment Instructions",
            "steps": [
                "Visit Commercial Bank branch or use internet banking",
                "Make deposit to account: 0987654321",
                f"Amount: {amount} {currency}",
                "Use your phone number as reference",
            ],
            "note": "Upload the deposit slip as payment proof.",
        }
    return {
        "title": "Payment Instructions",
        "steps": ["Contact support for payment instructions"],
        "note": "Payment method not recognized",
    }


class PaymentLifecycleManager:
    """
    Owns every status change of payments and of the booking payment state.

    Each public mutation runs inside one transaction together with its
    audit entry and notifications.
    """

    def __init__(
        self,
        session: AsyncSession,
        notifier: Optional[NotificationService] = None,
        audit: Optional[AuditService] = None,
        ticket_issuer: Optional[TicketIssuer] = None,
        storage: Optional[LocalFileStorage] = None,
        lock_inventory: Optional[bool] = None
    ):
        self.session = session
        self.notifier = notifier or NotificationService(session)
        self.audit = audit or AuditService(session)
        self.storage = storage or get_storage()
        self.ticket_issuer = ticket_issuer or TicketIssuer(self.storage)
        self.inventory = InventoryCounter(session)
        self.lock_inventory = settings.TICKET_INVENTORY_LOCKING if lock_inventory is None else lock_inventory

    async def get_payment(self, payment_id: UUID) -> Payment:
        payment = await self.session.get(Payment, payment_id)
        if not payment:
            raise NotFoundError("Payment", payment_id)
        return payment

    async def _active_payment_for_booking(self, booking_id: UUID) -> Optional[Payment]:
        result = await self.session.execute(
            select(Payment).where(
                Payment.booking_id == booking_id,
                Payment.status.in_(ACTIVE_PAYMENT_STATUSES)
            )
        )
        return result.scalars().first()

    async def owner_id(self, payment: Payment) -> Optional[UUID]:
        """User the payment belongs to: the ticket holder or the booking's owner"""
        target = payment.target
        if isinstance(target, EventTicketTarget):
            return target.user_id
        if payment.user_id is not None:
            return payment.user_id
        booking = await self.session.get(Booking, target.booking_id)
        return booking.user_id if booking else None

    async def ensure_can_view(self, payment: Payment, actor: User) -> None:
        if actor.is_admin:
            return
        if await self.owner_id(payment) != actor.id:
            raise AuthorizationError("You can only access your own payments")

    async def create_payment(
        self,
        booking_id: UUID,
        method,
        phone_number: Optional[str] = None,
        actor: Optional[User] = None
    ) -> Payment:
        """
        Start a payment for a booking.

        Raises NotFoundError, AlreadyPaidError when the booking is paid, and
        InvalidStateError while another payment for it is still open.
        """
        method = normalize_payment_method(method)

        async with db_manager.transaction(self.session):
            booking = await self.session.get(Booking, booking_id)
            if not booking:
                raise NotFoundError("Booking", booking_id)
            if actor is not None and not actor.is_admin and booking.user_id != actor.id:
                raise AuthorizationError("You can only pay for your own bookings")

            if booking.payment_status == BookingPaymentStatus.PAID:
                raise AlreadyPaidError(booking.id)
            if booking.payment_status not in PAYABLE_BOOKING_STATES:
                raise InvalidStateError(
                    "Payment already in progress for this booking",
                    details={"booking_id": str(booking.id), "payment_status": booking.payment_status.value}
                )
            if await self._active_payment_for_booking(booking.id):
                raise InvalidStateError(
                    "Payment already in progress for this booking",
                    details={"booking_id": str(booking.id)}
                )

            payment = Payment(
                booking_id=booking.id,
                user_id=booking.user_id,
                amount=booking.price_calculated,
                currency=settings.DEFAULT_CURRENCY,
                payment_method=method,
                phone_number=phone_number,
                transaction_id=generate_transaction_id(),
                status=PaymentStatus.PENDING,
                payment_metadata={"type": "booking"},
            )
            self.session.add(payment)
            booking.payment_status = BookingPaymentStatus.PROCESSING
            try:
                await self.session.flush()
            except IntegrityError as e:
                # A concurrent request opened a payment after our check
                raise InvalidStateError(
                    "Payment already in progress for this booking",
                    details={"booking_id": str(booking_id)}
                ) from e

            self.audit.record(
                "create_payment",
                "payment",
                payment.id,
                {"booking_id": booking.id, "amount": payment.amount, "method": method.value},
                user_id=actor.id if actor else None,
            )
            self.notifier.notify(
                ADMINS,
                NotificationType.PAYMENT_CREATED,
                f"New payment created for booking {booking.id}",
                {"bookingId": booking.id, "paymentId": payment.id, "amount": payment.amount},
            )

        PAYMENTS_CREATED.labels(target="booking", method=method.value).inc()
        logger.info(
            f"Payment {payment.id} created for booking {booking_id} via {method.value}",
            extra={"payment_id": payment.id, "booking_id": booking_id}
        )
        return payment

    async def create_event_payment(
        self,
        event_id: UUID,
        user_id: UUID,
        method,
        phone_number: Optional[str] = None
    ) -> Payment:
        """
        Start a ticket purchase. Capacity is not checked here; it is
        enforced when the payment is approved.
        """
        method = normalize_payment_method(method)

        async with db_manager.transaction(self.session):
            event = await self.session.get(Event, event_id)
            if not event:
                raise NotFoundError("Event", event_id)

            payment = Payment(
                event_id=event.id,
                user_id=user_id,
                amount=event.ticket_price or 0,
                currency=settings.DEFAULT_CURRENCY,
                payment_method=method,
                phone_number=phone_number,
                transaction_id=generate_transaction_id(),
                status=PaymentStatus.PENDING,
                payment_metadata={"type": "event", "title": event.title},
            )
            self.session.add(payment)
            await self.session.flush()

            self.audit.record(
                "create_event_payment",
                "payment",
                payment.id,
                {"event_id": event.id, "amount": payment.amount, "method": method.value},
                user_id=user_id,
            )
            self.notifier.notify(
                ADMINS,
                NotificationType.PAYMENT_CREATED,
                f"New payment created for event {event.id}",
                {"eventId": event.id, "paymentId": payment.id, "amount": payment.amount},
            )

        PAYMENTS_CREATED.labels(target="event", method=method.value).inc()
        logger.info(
            f"Payment {payment.id} created for event {event_id} by user {user_id}",
            extra={"payment_id": payment.id, "event_id": event_id, "user_id": user_id}
        )
        return payment

    @staticmethod
    def get_instructions(
        method,
        amount: int,
        phone_number: Optional[str] = None,
        receiver: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Static transfer steps for a channel, with the configured receiver attached"""
        try:
            method = normalize_payment_method(method)
        except ValidationError:
            method = None

        instructions = _instruction_template(method, amount, phone_number)
        instructions.update({
            "method": method.value if method else None,
            "amount": amount,
            "currency": settings.DEFAULT_CURRENCY,
            "phone_number": phone_number,
            "receiver": receiver,
        })
        return instructions

    async def get_receiver(self, method) -> Optional[Dict[str, Any]]:
        method = normalize_payment_method(method)
        result = await self.session.execute(
            select(PaymentMethodConfig).where(
                PaymentMethodConfig.method == method,
                PaymentMethodConfig.active.is_(True)
            )
        )
        config = result.scalar_one_or_none()
        return config.as_receiver() if config else None

    async def upload_proof(self, payment_id: UUID, proof: Optional[ProofImage], actor: User) -> Payment:
        """
        Attach the transfer proof. The payment stays pending until an admin
        decides on it.
        """
        with self._discard_on_failure() as written:
            async with db_manager.transaction(self.session):
                payment = await self.get_payment(payment_id)
                if not actor.is_admin and await self.owner_id(payment) != actor.id:
                    raise AuthorizationError("You can only upload proof for your own payments")

                if proof is None or not proof.data:
                    raise ValidationError("Proof image is required", field="proof")
                if proof.content_type not in settings.ALLOWED_IMAGE_TYPES:
                    raise ValidationError("Proof must be an image", field="proof")
                if len(proof.data) > settings.MAX_UPLOAD_SIZE_BYTES:
                    raise ValidationError("Proof image is too large", field="proof")
                if not payment.is_pending:
                    raise InvalidStateError(
                        "Proof can only be uploaded for pending payments",
                        details={"payment_id": str(payment.id), "status": payment.status.value}
                    )

                filename = f"payment-proof-{payment.id}-{secrets.token_hex(4)}{_EXTENSIONS.get(proof.content_type, '')}"
                payment.proof_image_url = self.storage.save(proof.data, PROOF_FOLDER, filename)
                written.append((self.storage, payment.proof_image_url))
                payment.proof_uploaded_at = utcnow()

                self.audit.record(
                    "upload_payment_proof",
                    "payment",
                    payment.id,
                    {"proof_image_url": payment.proof_image_url},
                    user_id=actor.id,
                )

        logger.info(f"Proof uploaded for payment {payment_id}", extra={"payment_id": payment_id})
        return payment

    @contextmanager
    def _discard_on_failure(self) -> Iterator[List[Tuple[LocalFileStorage, str]]]:
        """Files recorded inside the block are removed if it raises"""
        written: List[Tuple[LocalFileStorage, str]] = []
        try:
            yield written
        except Exception:
            for storage, url in written:
                storage.delete(url)
                logger.info(f"Discarded {url} after rollback")
            raise

    async def _lock_event(self, event_id: UUID) -> Optional[Event]:
        query = select(Event).where(Event.id == event_id)
        if self.lock_inventory:
            # Serializes concurrent approvals for the same event
            query = query.with_for_update()
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def process_payment(self, payment_id: UUID, approve: bool, actor: Optional[User] = None) -> Payment:
        """
        Admin decision on a pending payment.

        Checks in order: NotFoundError, AlreadyProcessedError,
        ProofMissingError, then SoldOutError for approvals of full events.
        Any failure leaves the payment and its booking untouched and removes
        the ticket image it wrote.
        """
        if actor is not None and not actor.is_admin:
            raise AuthorizationError("Admin access required")

        with self._discard_on_failure() as written:
            async with db_manager.transaction(self.session):
                payment = await self.get_payment(payment_id)
                if not payment.is_pending:
                    raise AlreadyProcessedError(payment.id, payment.status.value)
                if not payment.proof_image_url:
                    raise ProofMissingError(payment.id)

                booking = await self.session.get(Booking, payment.booking_id) if payment.booking_id else None

                if approve:
                    url = await self._approve(payment, booking)
                    if url:
                        written.append((self.ticket_issuer.storage, url))
                else:
                    self._reject(payment, booking)

                owner_id = payment.user_id or (booking.user_id if booking else None)
                if owner_id:
                    if approve:
                        self.notifier.notify(
                            owner_id,
                            NotificationType.PAYMENT_COMPLETED,
                            "Payment completed successfully",
                            {"paymentId": payment.id, "bookingId": payment.booking_id, "eventId": payment.event_id},
                        )
                    else:
                        self.notifier.notify(
                            owner_id,
                            NotificationType.PAYMENT_FAILED,
                            "Payment failed. Please try again.",
                            {"paymentId": payment.id},
                        )

                self.audit.record(
                    "process_payment",
                    "payment",
                    payment.id,
                    {"approve": approve, "status": payment.status.value, "qr_code_url": payment.qr_code_url},
                    user_id=actor.id if actor else None,
                )

        PAYMENT_DECISIONS.labels(outcome="approved" if approve else "rejected").inc()
        logger.info(
            f"Payment {payment_id} {'approved' if approve else 'rejected'}",
            extra={"payment_id": payment_id, "booking_id": payment.booking_id, "event_id": payment.event_id}
        )
        return payment

    async def _approve(self, payment: Payment, booking: Optional[Booking]) -> Optional[str]:
        if payment.event_id is not None:
            event = await self._lock_event(payment.event_id)
            if event is not None and event.total_tickets is not None:
                sold = await self.inventory.count_completed(event.id, exclude_payment_id=payment.id)
                if sold >= event.total_tickets:
                    SOLD_OUT_REJECTIONS.inc()
                    raise SoldOutError(event.id, event.total_tickets)

        payment.status = PaymentStatus.COMPLETED
        payment.processed_at = utcnow()
        if booking:
            booking.payment_status = BookingPaymentStatus.PAID
            booking.status = BookingStatus.CONFIRMED

        url = self.ticket_issuer.issue(payment)
        if url:
            payment.qr_code_url = url
            if booking:
                booking.qr_code_url = url
                booking.transaction_id = payment.transaction_id
        return url

    @staticmethod
    def _reject(payment: Payment, booking: Optional[Booking]) -> None:
        payment.status = PaymentStatus.FAILED
        payment.failed_at = utcnow()
        if booking:
            booking.payment_status = BookingPaymentStatus.FAILED

    async def list_event_tickets(self, user: User) -> List[Payment]:
        result = await self.session.execute(
            select(Payment)
            .where(Payment.event_id.is_not(None), Payment.user_id == user.id)
            .order_by(Payment.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_payments(
        self,
        status: Optional[PaymentStatus] = None,
        kind: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Payment]:
        query = select(Payment)
        if status:
            query = query.where(Payment.status == status)
        if kind == "booking":
            query = query.where(Payment.booking_id.is_not(None))
        elif kind == "event":
            query = query.where(Payment.event_id.is_not(None))
        query = query.order_by(Payment.created_at.desc()).limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_for_user(
        self,
        user: User,
        status: Optional[PaymentStatus] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Payment]:
        """Booking payments and ticket purchases belonging to ``user``, newest first"""
        own_bookings = select(Booking.id).where(Booking.user_id == user.id)
        query = select(Payment).where(
            or_(Payment.user_id == user.id, Payment.booking_id.in_(own_bookings))
        )
        if status:
            query = query.where(Payment.status == status)
        query = query.order_by(Payment.created_at.desc()).limit(limit).offset(offset)

        result = await self.session.execute(query)
        return list(result.scalars().all())
