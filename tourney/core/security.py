import secrets
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from tourney.core.config import settings

ALGORITHM = "HS256"
ADMIN_SCOPE = "tournament_admin"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class AdminCapability(BaseModel):
    """Proof that the caller may mutate one tournament. Issued only after authentication."""
    tournament_id: str
    token_secret: Optional[str] = None


class InvalidAdminToken(Exception):
    pass


def generate_admin_token() -> str:
    return "admin_" + secrets.token_urlsafe(16)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_admin_token(tournament_id: str, token_secret: str, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {"sub": tournament_id, "tok": token_secret, "scope": ADMIN_SCOPE, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)

def decode_admin_token(token: str) -> AdminCapability:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError as e:
        raise InvalidAdminToken("Could not validate admin token") from e
    tournament_id = payload.get("sub")
    if tournament_id is None or payload.get("scope") != ADMIN_SCOPE:
        raise InvalidAdminToken("Could not validate admin token")
    return AdminCapability(tournament_id=tournament_id, token_secret=payload.get("tok"))

def ensure_admin(capability: AdminCapability, tournament_id: str):
    if capability is None or capability.tournament_id != tournament_id:
        raise PermissionError("User is not authorized to modify this tournament.")
