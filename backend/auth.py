# auth.py - Editor identity for the content service
# Tokens are issued by the site's identity provider; this service only
# verifies them and turns the claims into an EditorIdentity.
# - HS256 JWT bearer tokens (python-jose)
# - 3-tier roles (admin, editor, reader)

import os
import secrets
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from content import EditorIdentity
from models import EditorRole

# ============================================================
# CONFIGURATION
# ============================================================

SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
if not SECRET_KEY:
    SECRET_KEY = secrets.token_urlsafe(64)
    logging.getLogger("vice-city.auth").warning(
        "⚠️  JWT_SECRET_KEY not set. Generated ephemeral key; "
        "tokens from the identity provider will not verify."
    )

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

security = HTTPBearer()

ROLE_HIERARCHY = {
    EditorRole.ADMIN: 3,
    EditorRole.EDITOR: 2,
    EditorRole.READER: 1,
}


class CurrentEditor(BaseModel):
    uid: str
    display_name: str
    role: str

    @property
    def identity(self) -> EditorIdentity:
        return EditorIdentity(uid=self.uid, display_name=self.display_name)


class AuthService:
    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """Sign a token; used by tests and the seed script."""
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        to_encode.update({
            "exp": now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)),
            "iat": now,
            "type": "access",
            "jti": str(uuid.uuid4()),
        })
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise HTTPException(status_code=401, detail="Token expired")
        except JWTError:
            raise HTTPException(status_code=401, detail="Invalid token")


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================

async def get_current_editor(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentEditor:
    payload = AuthService.verify_token(credentials.credentials)

    if payload.get("type") != "access":
        raise HTTPException(status_code=401, detail="Invalid token type")

    uid = payload.get("sub")
    if not uid:
        raise HTTPException(status_code=401, detail="Invalid token")

    role = payload.get("role", EditorRole.READER.value)
    if role not in {r.value for r in EditorRole}:
        role = EditorRole.READER.value

    return CurrentEditor(uid=uid, display_name=payload.get("name") or "", role=role)


def require_min_role(min_role: EditorRole):
    """Dependency factory: require editor role level >= min_role"""
    async def _check(editor: CurrentEditor = Depends(get_current_editor)) -> CurrentEditor:
        if ROLE_HIERARCHY[EditorRole(editor.role)] < ROLE_HIERARCHY[min_role]:
            raise HTTPException(status_code=403, detail="Insufficient role level")
        return editor
    return _check


require_editor = require_min_role(EditorRole.EDITOR)
require_admin = require_min_role(EditorRole.ADMIN)
