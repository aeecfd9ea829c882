from pydantic import BaseModel, EmailStr, Field
from datetime import datetime

class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, max_length=72, description="Plain password (will be hashed). Minimum 8 characters.")

class OwnerSignup(UserCreate):
    pharmacy_name: str = Field(..., min_length=1, description="Name of the pharmacy the owner runs")
    address: str | None = None
    location: str | None = None

class UserResponse(BaseModel):
    id: int
    username: str
    email: EmailStr
    role: str
    pharmacy_id: int
    created_at: datetime

    class Config:
        from_attributes = True

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

class PasswordChange(BaseModel):
    new_password: str = Field(..., min_length=8, max_length=72, description="Replacement password. Minimum 8 characters.")
