import re
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from app.models.user_model import Role
from app.schemas.common_schemas import CamelModel

# at least one letter, one digit and one symbol; nothing outside those classes
PASSWORD_RE = re.compile(r"^(?=.*[A-Za-z])(?=.*\d)(?=.*[@$!%*#?&])[A-Za-z\d@$!%*#?&]{8,}$")


class UserRegister(CamelModel):
    username: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)
    confirm_password: str = Field(min_length=1)


class UserLogin(CamelModel):
    username: str = Field(min_length=1)  # username or email
    password: str = Field(min_length=1)


class UserUpdate(CamelModel):
    user_id: int
    role: Optional[Role] = None
    username: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("password")
    @classmethod
    def validate_password_rules(cls, v):
        if v is not None and not PASSWORD_RE.match(v):
            raise ValueError("Password does not comply with the rules")
        return v

    @model_validator(mode="after")
    def require_a_change(self):
        if all(getattr(self, f) is None for f in ("role", "username", "email", "password")):
            raise ValueError("Nothing to update")
        return self


class UserDelete(CamelModel):
    user_id: int


class UserOut(CamelModel):
    id: int
    username: str
    email: str
    role: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserSummaryOut(CamelModel):
    id: int
    username: str
    email: str
