# models/customer.py - Customer Database Model
# ============================================================================
import uuid
from sqlalchemy import Column, String
from invoice_dashboard.core.database import Base

class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    image_url = Column(String, nullable=True)
