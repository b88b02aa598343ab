"""Auth schemas — registration, login and the attached identity."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field("", max_length=100)
    age: Optional[int] = Field(None, ge=0, le=150)
    password: str = Field(..., min_length=8)


class LoginRequest(BaseModel):
    email: str
    password: str


class Identity(BaseModel):
    """The principal attached to a request or realtime connection."""

    id: str
    email: str
    first_name: str = ""
    last_name: str = ""
    role: Literal["user", "admin"] = "user"
    cart_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
