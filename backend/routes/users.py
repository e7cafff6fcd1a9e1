# backend/routes/users.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
import logging

from database import get_db
from models.users import User
from schemas import user as schemas
from utils.audit import write_log, client_ip
from utils.errors import Conflict, InvalidCredential, NotFound
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import get_current_user, token_for_user

router = APIRouter(prefix="/api/users", tags=["Users"])
logger = logging.getLogger(__name__)

def _find_user_by_email(db: Session, email: str):
    return db.query(User).filter(func.lower(User.email) == email).first()


# Register a new user (optionally as admin) and issue a token
@router.post("/register", response_model=schemas.Token, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()

    # Check for existing user
    db_user = _find_user_by_email(db, normalized_email)
    if db_user:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": normalized_email, "reason": "Email exists"})
        raise Conflict("User already exists")

    new_user = User(
        username=payload.username,
        email=normalized_email,
        password_hash=get_password_hash(payload.password),
        role="admin" if payload.role == "admin" else "user",
    )
    db.add(new_user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same email
        db.rollback()
        raise Conflict("User already exists")
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": new_user.email, "role": new_user.role})
    logger.info("Registered user %s with role %s", new_user.id, new_user.role)

    return {"token": token_for_user(new_user)}


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()
    db_user = _find_user_by_email(db, normalized_email)

    # Same answer for unknown email and wrong password
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": normalized_email})
        raise InvalidCredential("Invalid credentials")

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})

    return {"token": token_for_user(db_user)}


# Retrieve current authenticated user details
@router.get("/profile", response_model=schemas.UserProfile)
def profile(
    db: Session = Depends(get_db),
    current_user: schemas.TokenData = Depends(get_current_user),
):
    user = db.query(User).filter(User.id == current_user.id).first()
    if not user:
        raise NotFound("User not found")
    return user
