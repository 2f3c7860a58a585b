from typing import Literal

from pydantic import BaseModel, Field


class UserRegister(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=200, pattern=r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
    password: str = Field(min_length=6)
    role: Literal["user", "publisher"] = "user"


class UserLogin(BaseModel):
    email: str = ""
    password: str = ""


class TokenResponse(BaseModel):
    success: bool = True
    token: str
