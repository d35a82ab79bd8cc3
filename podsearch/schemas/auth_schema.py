from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, constr

from podsearch.models.status import UserRole


class RegisterRequest(BaseModel):
    email: EmailStr
    password: constr(min_length=8)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    role: UserRole


class RegisterResponse(BaseModel):
    message: str
    user: UserInfo


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserInfo
