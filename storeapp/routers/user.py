"""
User accounts: signup, login and the current user.
Signup and login are the only endpoints reachable without a token.
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session
import logging

from storeapp.database import get_db
from storeapp import models
from storeapp.exceptions import ConflictError
from storeapp.schemas.common import envelope
from storeapp.schemas.user import UserSignup, UserLogin, UserResponse
from storeapp.security import (
    get_password_hash,
    create_access_token,
    authenticate_user,
    get_current_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["user"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(payload: UserSignup, db: Session = Depends(get_db)):
    existing = db.execute(
        select(models.User).where(models.User.email == payload.email)
    ).scalar_one_or_none()
    if existing:
        raise ConflictError("User with this email already exists")

    user = models.User(
        username=payload.username,
        email=payload.email,
        password_hash=get_password_hash(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"User signed up: {user.email}")

    return envelope("User registered successfully", UserResponse.model_validate(user))


@router.post("/login")
async def login(payload: UserLogin, db: Session = Depends(get_db)):
    user = authenticate_user(db, payload.email, payload.password)
    if user is None:
        logger.warning(f"Failed login attempt for {payload.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Inactive user")

    token = create_access_token(data={"sub": user.email, "id": user.id, "username": user.username})
    logger.info(f"User logged in: {user.email}")
    return envelope(
        "Login successful",
        {
            "token": token,
            "token_type": "bearer",
            "user": UserResponse.model_validate(user),
        },
    )


@router.get("/me")
async def me(current_user: models.User = Depends(get_current_user)):
    return envelope("User retrieved successfully", UserResponse.model_validate(current_user))
