from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from datetime import timedelta

from crisis_sim.api.database.database import get_db
from crisis_sim.api.auth.auth import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    authenticate_user,
    create_access_token,
    get_current_active_user,
    get_password_hash,
    get_user_by_email,
    get_user_by_username,
)
from crisis_sim.models.schemas import Token, UserCreate, UserResponse
from crisis_sim.models.users import USER_ROLE_USER, Users
from crisis_sim.seed import ensure_seed_data
from crisis_sim.settings import USER_STARTING_BALANCE

router = APIRouter(prefix="/api/auth", tags=["authentication"])


@router.post("/signup", response_model=UserResponse)
def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a trader with the default starting balance."""
    ensure_seed_data(db)

    if get_user_by_email(db, user_data.email):
        raise HTTPException(status_code=400, detail="Email already exists")
    if get_user_by_username(db, user_data.username):
        raise HTTPException(status_code=400, detail="Username already exists")

    user = Users(
        username=user_data.username,
        email=user_data.email,
        password=get_password_hash(user_data.password),
        role=USER_ROLE_USER,
        balance=USER_STARTING_BALANCE,
        risk_index=0.0,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """Login endpoint; the OAuth2 username field carries the email."""
    ensure_seed_data(db)
    db.commit()

    user = authenticate_user(db, form_data.username, form_data.password)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(
        data={"sub": user.email},
        expires_delta=timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    )
    return {"access_token": access_token, "token_type": "bearer"}


@router.get("/me", response_model=UserResponse)
def read_current_user(current_user: Users = Depends(get_current_active_user)):
    return current_user
