"""
Receiver details for each manual payment channel
"""

from sqlalchemy import Column, String, Text, Boolean, Enum

from app.models.base import BaseModel
from app.models.payment import PaymentMethod


class PaymentMethodConfig(BaseModel):
    __tablename__ = "payment_method_configs"

    method = Column(Enum(PaymentMethod), unique=True, nullable=False)
    receiver_name = Column(String(100))
    receiver_phone = Column(String(20))
    receiver_account_number = Column(String(50))
    note = Column(Text)
    active = Column(Boolean, default=True, nullable=False)

    def as_receiver(self) -> dict:
        return {
            "name": self.receiver_name,
            "phone": self.receiver_phone,
            "accountNumber": self.receiver_account_number,
            "note": self.note,
        }

    def __repr__(self):
        return f"<PaymentMethodConfig(method={self.method}, active={self.active})>"
