from pydantic import BaseModel, EmailStr, Field
from typing import Literal


AccountType = Literal["patient", "doctor"]


# Request Schemas
class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)
    user_type: AccountType = "patient"


class ForgotPasswordRequest(BaseModel):
    """Forgot password request schema."""

    email: EmailStr
    user_type: AccountType = "patient"
