from bson import ObjectId
from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field
from pymongo.database import Database

from auth import create_access_token, get_current_user, hash_password, verify_password
from database import create_document, get_db, now
from errors import Conflict, ValidationFailed
from helpers import public_user
from schemas import Profile, Role, User as UserSchema

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


def _token_response(user: dict) -> dict:
    token = create_access_token({"sub": str(user["_id"]), "role": user["role"]})
    return {"token": token, "token_type": "bearer", "user": public_user(user, include_email=True)}


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Database = Depends(get_db)):
    email = payload.email.strip().lower()
    if db["user"].find_one({"email": email}):
        raise Conflict("User already exists")
    user_doc = UserSchema(
        email=email,
        password_hash=hash_password(payload.password),
        role=payload.role,
        profile=Profile(first_name=payload.first_name.strip(), last_name=payload.last_name.strip()),
    ).to_document()
    user_id = create_document(db, "user", user_doc)
    user = db["user"].find_one({"_id": ObjectId(user_id)})
    return _token_response(user)


@router.post("/login")
def login(payload: LoginRequest, db: Database = Depends(get_db)):
    user = db["user"].find_one({"email": payload.email.strip().lower()})
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise ValidationFailed("Invalid credentials")
    if not user.get("is_active", True):
        raise ValidationFailed("Account is deactivated")
    db["user"].update_one({"_id": user["_id"]}, {"$set": {"last_login": now()}})
    return _token_response(user)


@router.get("/me")
def me(current_user: dict = Depends(get_current_user)):
    return public_user(current_user, include_email=True)
