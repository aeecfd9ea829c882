from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import SQLAlchemyError

from pharmapos.database import get_db
from pharmapos.models.pharmacies import Pharmacy
from pharmapos.models.users import ROLE_EMPLOYEE, ROLE_OWNER, User
from pharmapos.schemas.user import OwnerSignup, PasswordChange, TokenResponse, UserCreate, UserResponse
from pharmapos.core.auth import get_current_user, get_owner_user
from pharmapos.core.hashing import hash_password, verify_password
from pharmapos.core.jwt import create_access_token
from pharmapos.core.rate_limiter import limiter

router = APIRouter(prefix="/auth", tags=["Authentication"])

COMMON_PASSWORDS = {
    "password",
    "password123",
    "12345678",
    "qwerty123",
    "admin123",
}


def _check_password_strength(password: str):
    if password.lower() in COMMON_PASSWORDS:
        raise HTTPException(
            status_code=400,
            detail="Password is too common. Please choose a stronger password.",
        )

    if password.isdigit():
        raise HTTPException(
            status_code=400,
            detail="Password cannot be numbers only.",
        )


# ---------------- SIGNUP (OWNER + PHARMACY) ----------------
@router.post("/signup", status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
def signup(request: Request, user_data: OwnerSignup, db: Session = Depends(get_db)):
    _check_password_strength(user_data.password)

    if db.query(User).filter(User.email == user_data.email).first():
        raise HTTPException(status_code=409, detail="Email already exists")

    try:
        pharmacy = Pharmacy(
            name=user_data.pharmacy_name,
            address=user_data.address,
            location=user_data.location,
        )
        db.add(pharmacy)
        db.flush()

        user = User(
            username=user_data.username,
            email=user_data.email,
            password_hash=hash_password(user_data.password),
            role=ROLE_OWNER,
            pharmacy_id=pharmacy.id,
        )
        db.add(user)
        db.commit()

    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to create account")

    return {"message": "Account created successfully. Please login.", "pharmacy_id": pharmacy.id}


# ---------------- ADD EMPLOYEE ----------------
@router.post("/employees", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def add_employee(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    owner: User = Depends(get_owner_user),
):
    _check_password_strength(user_data.password)

    if db.query(User).filter(User.email == user_data.email).first():
        raise HTTPException(status_code=409, detail="Email already exists")

    employee = User(
        username=user_data.username,
        email=user_data.email,
        password_hash=hash_password(user_data.password),
        role=ROLE_EMPLOYEE,
        pharmacy_id=owner.pharmacy_id,
    )

    try:
        db.add(employee)
        db.commit()
        db.refresh(employee)
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to create employee")

    return employee


# ---------------- LOGIN (TOKEN-BASED) ----------------
@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    user = db.query(User).filter(User.email == form_data.username).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token(user)

    return {
        "access_token": token,
        "token_type": "bearer"
    }


# ---------------- CHANGE PASSWORD (SIGNED IN) ----------------
@router.post("/reset-password")
@limiter.limit("5/minute")
def reset_password(
    request: Request,
    payload: PasswordChange,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _check_password_strength(payload.new_password)

    try:
        current_user.password_hash = hash_password(payload.new_password)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise HTTPException(status_code=500, detail="Unable to update password")

    return {"message": "Password updated"}
