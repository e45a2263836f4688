from pydantic import BaseModel, EmailStr, Field
from typing import Dict, List, Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    mobile_number: str = Field(pattern=r"^\d{10}$")
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class Caller(BaseModel):
    """The authenticated requester, reduced to what access checks need."""
    user_id: str
    identity: str  # owner key of the caller's site prefix
    role: str = "user"
    email: Optional[str] = None


class MeResponse(BaseModel):
    user_id: str
    identity: str
    role: str
    email: Optional[str] = None
    resources: List[str]
    access_matrix: Dict[str, Dict[str, bool]]
