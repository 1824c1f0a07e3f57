# File: app/schemas/auth.py

from pydantic import BaseModel, EmailStr, Field

class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=512)

class TokenPair(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int

class SessionOut(BaseModel):
    isAuthenticated: bool
    isAdmin: bool
    loading: bool = False

class LoginOut(TokenPair):
    message: str
    session: SessionOut
