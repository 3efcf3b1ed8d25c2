from pydantic import field_validator

from app.users.schemas import UserOut
from app.utils.schemas import APIModel


class UserLogin(APIModel):
    name: str
    password: str

    @field_validator("name")
    @classmethod
    def name_required(cls, v):
        if not v or v.strip() == "":
            raise ValueError("Name and password required")
        return v.strip()


class LoginResponse(UserOut):
    access_token: str
    token_type: str = "bearer"
