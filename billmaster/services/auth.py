from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from billmaster.core.config import BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET_KEY
from billmaster.core.errors import AccountInactive, InvalidCredentials, InvalidToken
from billmaster.models.user import User

logger = logging.getLogger(__name__)


# Hash fixo usado quando o email não existe, para que a verificação
# custe o mesmo tempo nos dois caminhos.
@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return bcrypt.hashpw(b"billmaster-dummy-password", bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


@dataclass(frozen=True)
class SessionClaims:
    user_id: str
    company_id: str
    role_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


# =========================
# PASSWORD (bcrypt direto)
# =========================
def _normalize_password_for_bcrypt(password: str) -> bytes:
    """bcrypt só considera até 72 bytes; trunca para não quebrar."""
    pw = (password or "").encode("utf-8")
    if len(pw) <= 72:
        return pw
    return pw[:72]


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    pw = _normalize_password_for_bcrypt(password)
    hashed = bcrypt.hashpw(pw, bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_normalize_password_for_bcrypt(plain_password), password_hash.encode("utf-8"))
    except ValueError:
        return False


# =========================
# JWT HELPERS
# =========================
def create_access_token(
    user: User,
    expires_minutes: int = JWT_EXPIRE_MINUTES,
    now: Optional[datetime] = None,
) -> str:
    """
    "sub" precisa ser STRING; os demais claims espelham o que o front
    já consome (userId, companyId, roleId, email).
    """
    now = now or datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)

    payload: Dict[str, Any] = {
        "sub": str(user.id),
        "userId": str(user.id),
        "companyId": str(user.company_id),
        "roleId": str(user.role_id),
        "email": user.email,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def verify_session(token: str) -> SessionClaims:
    """Valida assinatura e expiração. Não consulta o banco."""
    if not token:
        raise InvalidToken()
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        raise InvalidToken() from exc

    user_id = payload.get("userId") or payload.get("sub")
    company_id = payload.get("companyId")
    role_id = payload.get("roleId")
    if not user_id or not company_id or not role_id or "exp" not in payload:
        raise InvalidToken()

    return SessionClaims(
        user_id=str(user_id),
        company_id=str(company_id),
        role_id=str(role_id),
        email=str(payload.get("email") or ""),
        issued_at=datetime.fromtimestamp(int(payload.get("iat", 0)), tz=timezone.utc),
        expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
    )


# =========================
# LOGIN
# =========================
def authenticate(db: Session, email: str, password: str) -> tuple[User, str]:
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        verify_password(password, _dummy_hash())
        logger.info("login rejected: unknown email")
        raise InvalidCredentials()

    if not verify_password(password, user.password_hash):
        logger.info("login rejected: bad password user_id=%s", user.id)
        raise InvalidCredentials()

    if not user.is_active:
        logger.info("login rejected: inactive account user_id=%s", user.id)
        raise AccountInactive()

    token = create_access_token(user)
    logger.info("login ok user_id=%s company_id=%s", user.id, user.company_id)
    return user, token
