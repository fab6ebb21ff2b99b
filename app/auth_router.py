import secrets

from fastapi import APIRouter
from pydantic import BaseModel

from app.auth import create_access_token
from app.config import settings
from app.exceptions import UnauthorizedError

router = APIRouter()


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest) -> TokenResponse:
    valid = (
        bool(settings.auth_password)
        and secrets.compare_digest(data.username, settings.auth_username)
        and secrets.compare_digest(data.password, settings.auth_password)
    )
    if not valid:
        raise UnauthorizedError("Invalid credentials")

    return TokenResponse(access_token=create_access_token(data.username))
