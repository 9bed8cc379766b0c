"""
FinSight Backend — Auth Request/Response Schemas
==================================================

What:  Pydantic models for POST /login and POST /signin.
Why:   Every request field is Optional on purpose: presence is checked by
       the service layer so a missing field yields a 400 with the API's
       own message rather than FastAPI's generic 422.
"""

from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: Optional[str] = Field(default=None, description="Registered email address")
    password: Optional[str] = Field(default=None, description="Plaintext password")


class SignupRequest(BaseModel):
    """
    Signup body. Supplying `amount` or `riskAppetite` creates an investor
    profile; otherwise the contact fields form an account profile.
    """

    name: Optional[str] = Field(default=None)
    email: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)
    role: Optional[str] = Field(default=None, description="user (default) or agent")

    # Account profile
    phoneNumber: Optional[str] = Field(default=None)
    address: Optional[str] = Field(default=None)
    companyName: Optional[str] = Field(default=None)
    pincode: Optional[str] = Field(default=None)
    city: Optional[str] = Field(default=None)

    # Investor profile
    amount: Optional[float] = Field(default=None, description="Capital available to invest")
    riskAppetite: Optional[str] = Field(default=None)


class UserSummary(BaseModel):
    id: str
    name: str
    email: str


class LoginResponse(BaseModel):
    """
    Returned by POST /login together with an HttpOnly `token` cookie.
    """

    success: bool = True
    message: str = "Login successful"
    token: str = Field(description="Bearer token for the Authorization header")
    role: str
    user: UserSummary


class SignupResponse(BaseModel):
    success: bool = True
    message: str = "Signup successful"
    user: dict = Field(description="Public profile fields of the new user")
