# models/user.py - User Database Model
# ============================================================================

import uuid
from sqlalchemy import Column, String
from invoice_dashboard.core.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)  # argon2 hash
