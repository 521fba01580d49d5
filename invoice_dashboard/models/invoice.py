# models/invoice.py - Invoice Database Model
# ============================================================================
import uuid
from sqlalchemy import Column, Date, Enum as SQLEnum, ForeignKey, Integer, String
from enum import Enum
from invoice_dashboard.core.database import Base


class InvoiceStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"

class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # cents
    status = Column(
        SQLEnum(
            InvoiceStatus,
            name="invoice_status",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        nullable=False,
        default=InvoiceStatus.PENDING,
    )
    date = Column(Date, nullable=False)
