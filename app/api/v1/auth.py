"""
Authentication routes (register, login, logout, me)
"""
from fastapi import APIRouter, Request, Form, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_user
from app.auth import authenticate, register_user
from app.infrastructure.db.models import User


router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str | None = None


class UserResponse(BaseModel):
    id: int
    email: str
    name: str | None


def _user_response(user: User) -> UserResponse:
    return UserResponse(id=user.id, email=user.email, name=user.name)


@router.post("/register", response_model=UserResponse, status_code=201)
def register(
    request: Request,
    req: RegisterRequest,
    db: Session = Depends(get_db),
):
    """Регистрация; пользователь сразу залогинен"""
    user = register_user(db, req.email, req.password, req.name)
    request.session["user_id"] = user.id
    return _user_response(user)


@router.post("/login", response_model=UserResponse)
def login(
    request: Request,
    email: str = Form(...),
    password: str = Form(...),
    db: Session = Depends(get_db),
):
    """Вход по форме (email + password)"""
    user = authenticate(db, email, password)
    if not user:
        raise HTTPException(status_code=401, detail="Неверный email или пароль")

    request.session["user_id"] = user.id
    return _user_response(user)


@router.post("/logout")
def logout(request: Request):
    """Выход из системы"""
    request.session.clear()
    return {"status": "logged_out"}


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return _user_response(user)
