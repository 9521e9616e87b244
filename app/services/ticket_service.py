"""
Ticket issuance
Renders a QR code for a completed payment and stores it as a PNG
"""

from io import BytesIO
from typing import Optional
import logging

import qrcode
from PIL import Image as PILImage

from app.config import settings
from app.core.metrics import TICKETS_ISSUED, TICKET_ISSUE_FAILURES
from app.core.storage import LocalFileStorage
from app.models.base import utcnow
from app.models.payment import Payment

logger = logging.getLogger(__name__)

QR_FOLDER = "qrcodes"


class TicketIssuer:
    """Service for generating payment tickets"""

    def __init__(self, storage: LocalFileStorage):
        self.storage = storage

    @staticmethod
    def build_payload(payment: Payment) -> str:
        """Plain text encoded in the ticket QR code"""
        method = payment.payment_method.value if payment.payment_method else ""
        issued = (payment.processed_at or utcnow()).date().isoformat()
        return (
            "Payment Details:\n"
            f"Amount: {payment.amount} {payment.currency or settings.DEFAULT_CURRENCY}\n"
            f"Payment Method: {method}\n"
            f"Phone Number: {payment.phone_number or ''}\n"
            f"Transaction ID: {payment.transaction_id}\n"
            f"Date: {issued}"
        )

    @staticmethod
    def generate_qr_code(
        data: str,
        size: int = settings.QR_CODE_SIZE,
        border: int = settings.QR_CODE_BORDER
    ) -> bytes:
        """Generate a PNG QR code for ``data``"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=border,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        if size != img.size[0]:
            img = img.resize((size, size), PILImage.Resampling.LANCZOS)

        buffer = BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()

    def issue(self, payment: Payment) -> Optional[str]:
        """
        Store the ticket image for ``payment`` and return its URL.

        Returns None when generation or storage fails; a missing ticket
        never blocks the approval that triggered it.
        """
        try:
            image = self.generate_qr_code(self.build_payload(payment))
            url = self.storage.save(image, QR_FOLDER, f"payment_{payment.id}.png")
        except Exception:
            logger.exception(f"Ticket generation failed for payment {payment.id}")
            TICKET_ISSUE_FAILURES.inc()
            return None

        TICKETS_ISSUED.inc()
        logger.info(f"Issued ticket for payment {payment.id}: {url}")
        return url
