from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from app.core.security import InvalidTokenError, decode_access_token
from app.models.models import User


bearer_scheme = HTTPBearer(auto_error=False)

# Dependency to get DB
def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

def get_email_service(request: Request):
    return request.app.state.email_service

def get_image_storage(request: Request):
    storage = request.app.state.image_storage
    if storage is None:
        raise HTTPException(status_code=503, detail="Image uploads are not configured")
    return storage

def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )

# Anonymous capability: identity if a valid token was sent, otherwise None
def get_optional_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    if creds is None:
        return None
    try:
        claims = decode_access_token(creds.credentials)
    except InvalidTokenError:
        raise _unauthorized("Invalid or expired token")

    user = db.query(User).filter(User.id == claims.id).first()
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user

# Authenticated capability
def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    if creds is None:
        raise _unauthorized("Access denied. No token provided.")
    return user

# Admin capability; the role is read from the user row, not trusted from the token
def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
