from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum

from ..core.database import Base

class ItemType(str, enum.Enum):
    EQUIPMENT = "Equipment"
    MEDICINE = "Medicine"
    CONSUMABLE = "Consumable"
    DEVICE = "Device"
    OTHER = "Other"

class Urgency(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

class UtilityRequestStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class UtilityRequest(Base):
    __tablename__ = "utility_requests"

    id = Column(Integer, primary_key=True, index=True)
    doctor_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Requested item
    item_name = Column(String(255), nullable=False)
    item_type = Column(SQLEnum(ItemType), nullable=False)
    quantity = Column(Integer, nullable=False)
    urgency = Column(SQLEnum(Urgency), default=Urgency.MEDIUM, nullable=False)
    reason = Column(Text, nullable=False)

    # Review
    status = Column(SQLEnum(UtilityRequestStatus), default=UtilityRequestStatus.PENDING, nullable=False)
    admin_notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    doctor = relationship("User")

    def __repr__(self):
        return f"<UtilityRequest(id={self.id}, item_name='{self.item_name}', status='{self.status}')>"
