from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from lantern.auth.utils import create_token, decode_token, hash_password, verify_password
from lantern.db import create_user, get_user, get_user_by_name

router = APIRouter(prefix="/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=40)
    password: str
    password_confirm: str


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post("/register", status_code=201)
async def register(payload: RegisterRequest):
    if payload.password != payload.password_confirm:
        raise HTTPException(400, "Passwords do not match")

    if len(payload.password) < 8:
        raise HTTPException(400, "Password must be at least 8 characters")

    if get_user_by_name(payload.username):
        raise HTTPException(400, "Username already taken")

    user_id = create_user(payload.username, hash_password(payload.password))
    return {"id": user_id, "username": payload.username}


@router.post("/login")
async def login(payload: LoginRequest):
    user = get_user_by_name(payload.username)

    if not user or not verify_password(payload.password, user["password_hash"]):
        raise HTTPException(401, "Invalid credentials")

    token = create_token(user["id"])
    resp = JSONResponse({"token": token})
    resp.set_cookie("token", token, httponly=True, samesite="lax", max_age=86400)
    return resp


@router.post("/logout")
async def logout():
    resp = JSONResponse({"success": True})
    resp.delete_cookie("token")
    return resp


def get_request_token(request: Request) -> str | None:
    """Bearer header first, then the login cookie."""
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get("token")


def get_current_user(request: Request) -> dict | None:
    token = get_request_token(request)
    if not token:
        return None

    user_id = decode_token(token)
    if not user_id:
        return None

    return get_user(user_id)


@router.get("/me")
async def me(request: Request):
    user = get_current_user(request)
    if not user:
        raise HTTPException(401, "Not authenticated")
    return user
