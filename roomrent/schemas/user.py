import uuid
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from roomrent.models.enums import UserRole

USERNAME_PATTERN = r"^[A-Za-z0-9]{3,30}$"


class UserLogin(BaseModel):
    username: str = Field(pattern=USERNAME_PATTERN)
    password: str = Field(min_length=6)


class UserCreate(BaseModel):
    username: str = Field(pattern=USERNAME_PATTERN)
    password: str = Field(min_length=6)
    full_name: str | None = Field(default=None, max_length=100)
    role: UserRole = UserRole.MANAGER


class UserResponse(BaseModel):
    id: uuid.UUID
    username: str
    full_name: str | None = None
    role: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class UserPasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self) -> "UserPasswordChange":
        if self.new_password != self.confirm_password:
            raise ValueError("confirm_password does not match new_password")
        return self
