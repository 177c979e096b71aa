"""Authentication endpoints for registration, login and profile."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.core.security import hash_password, verify_password, create_access_token
from app.database import get_db
from app.models.user import User
from app.schemas.user import AuthResponse, UserCreate, UserLogin, UserResponse, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def issue_token(user: User) -> dict:
    """Build the token + user payload returned by register and login."""
    # sub must be a string for JWT
    access_token = create_access_token(data={"sub": str(user.id), "email": user.email})
    return {"access_token": access_token, "token_type": "bearer", "user": user}


def ensure_identity_available(db: Session, email: str = None, username: str = None, exclude_user_id: int = None):
    """
    Raise 409 if the email or handle is already taken by another user.

    Raises:
        HTTPException: 409 on email or username collision
    """
    if email is not None:
        query = db.query(User).filter(User.email == email)
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email already registered"
            )

    if username is not None:
        query = db.query(User).filter(User.username == username)
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        if query.first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Username already taken"
            )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Register a new user account.

    Args:
        user_data: User registration data (name, email, password, optional username)
        db: Database session

    Returns:
        JWT token and public profile for the newly created user

    Raises:
        HTTPException: 409 if email or username already exists
    """
    ensure_identity_available(db, email=user_data.email, username=user_data.username)

    # Create new user with hashed password
    new_user = User(
        email=user_data.email,
        name=user_data.name,
        username=user_data.username,
        hashed_password=hash_password(user_data.password)
    )

    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email or username already registered"
        )
    db.refresh(new_user)

    logger.info("Registered user %s", new_user.id)
    return issue_token(new_user)


@router.post("/login", response_model=AuthResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """
    Login with email and password.

    Args:
        credentials: Email and password
        db: Database session

    Returns:
        JWT token and public profile, including the admin flag

    Raises:
        HTTPException: 401 if credentials are invalid (same message for unknown email)
    """
    user = db.query(User).filter(User.email == credentials.email).first()

    # Verify user exists and password is correct
    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.info("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return issue_token(user)


@router.get("/me", response_model=UserResponse)
def get_current_user_info(current_user: User = Depends(get_current_user)):
    """
    Get current authenticated user information.

    Args:
        current_user: Current authenticated user from JWT token

    Returns:
        User information (excludes password)
    """
    return current_user


@router.put("/profile", response_model=UserResponse)
def update_profile(
    profile_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update the caller's name, handle, email and/or password.

    Only provided fields are changed.

    Raises:
        HTTPException: 409 if the new email or username belongs to someone else
    """
    update_data = profile_data.model_dump(exclude_unset=True)

    ensure_identity_available(
        db,
        email=update_data.get("email"),
        username=update_data.get("username"),
        exclude_user_id=current_user.id,
    )

    password = update_data.pop("password", None)
    if password:
        current_user.hashed_password = hash_password(password)

    for field, value in update_data.items():
        if value is None and field in ("name", "email"):
            continue
        setattr(current_user, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email or username already registered"
        )
    db.refresh(current_user)

    return current_user
