from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database

import config
from database import get_db, to_obj_id
from errors import Forbidden, Unauthenticated, ValidationFailed

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALG)


def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Database = Depends(get_db)) -> dict:
    if not token:
        raise Unauthenticated("No token, authorization denied")
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALG])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise Unauthenticated()
    except JWTError:
        raise Unauthenticated("Token is not valid")
    try:
        oid = to_obj_id(user_id)
    except ValidationFailed:
        raise Unauthenticated("Token is not valid")
    user = db["user"].find_one({"_id": oid})
    if not user or not user.get("is_active", True):
        raise Unauthenticated("Token is not valid")
    user["id"] = str(user["_id"])
    return user


def require_role(*roles: str):
    def role_dep(current_user: dict = Depends(get_current_user)) -> dict:
        if current_user.get("role") not in roles:
            raise Forbidden(f"Access denied. Required role: {', '.join(roles)}")
        return current_user
    return role_dep
