from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str = Field(min_length=1, description="Password is required")

# Schema for user registration requests
class UserCreate(UserBase):
    username: str
    password: str = Field(min_length=6, description="Password must be at least 6 characters")
    role: Optional[str] = None  # only "admin" elevates, anything else means "user"

    @field_validator("username")
    @classmethod
    def username_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username is required")
        return v

# Output schema for profile details
class UserProfile(BaseModel):
    id: int
    username: str
    email: str
    role: str

    model_config = ConfigDict(from_attributes=True)

# Schema for the token returned by register/login
class Token(BaseModel):
    token: str

# Identity decoded from the JWT payload
class TokenData(BaseModel):
    id: int
    role: str = "user"
