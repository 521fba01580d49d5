# schemas/auth.py - Authentication Schemas
# ============================================================================
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

class CredentialsRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)

class SignInState(BaseModel):
    message: Optional[str] = None
