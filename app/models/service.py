"""
Service catalog model
"""

from sqlalchemy import Column, String, Integer, Enum
import enum

from app.models.base import BaseModel


class ServiceStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Service(BaseModel):
    """
    Catalog entry a booking may reference; bookings keep a snapshot of it
    """
    __tablename__ = "services"

    name = Column(String(255), nullable=False)
    category = Column(String(100))
    price = Column(Integer, nullable=False, default=0)
    status = Column(
        Enum(ServiceStatus),
        default=ServiceStatus.ACTIVE,
        nullable=False
    )

    def snapshot(self) -> dict:
        """Price and name as captured at booking time"""
        return {
            "id": str(self.id),
            "name": self.name,
            "price": self.price,
            "category": self.category,
        }

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, price={self.price})>"
