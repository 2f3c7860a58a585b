import uuid

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from bootcamp_api.core.security import decode_user_token
from bootcamp_api.db.session import get_db
from bootcamp_api.models.user import User

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authorized to access this route")
    try:
        claims = decode_user_token(creds.credentials)
        user_id = uuid.UUID(str(claims.get("sub") or ""))
    except (JWTError, ValueError):
        raise HTTPException(status_code=401, detail="Not authorized to access this route")
    user = db.get(User, user_id)
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Not authorized to access this route")
    return user

def require_role(*roles: str):
    def _inner(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail=f"User role {user.role} is not authorized to access this route")
        return user
    return _inner
