# utils/tokenJWT.py
from jose import jwt, JWTError
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from config import settings
from database import get_db
from models.users import User, UserRole

# Authorization scheme
bearer_scheme = HTTPBearer()

# Landing routes per role returned after login
ROLE_LANDING = {
    UserRole.ADMIN.value: "/admin/dashboard",
    UserRole.VENDOR.value: "/vendor/dashboard",
    UserRole.CUSTOMER.value: "/customer/home",
}

# Generate a new JWT access token
def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

# Token for a user; remember_me extends the lifetime to days instead of hours
def create_user_token(user: User, remember_me: bool = False) -> str:
    if remember_me:
        expires = timedelta(days=settings.REMEMBER_ME_EXPIRE_DAYS)
    else:
        expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return create_access_token(
        data={"sub": str(user.id), "role": user.role, "name": user.name},
        expires_delta=expires,
    )

# Retrieve the currently authenticated user based on the JWT token
def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db)
) -> User:
    token = credentials.credentials
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        subject = payload.get("sub")
        # Ensure the user id is present in the token payload
        if subject is None:
            raise credentials_exception
        user_id = int(subject)
    except (JWTError, ValueError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise credentials_exception
    return user

def has_role(user: User, *roles) -> bool:
    allowed = {(r.value if isinstance(r, UserRole) else r).lower() for r in roles}
    return (user.role or "").lower() in allowed

# Dependency factory for Role-Based Access Control
def role_required(*allowed_roles):
    def _checker(current_user: User = Depends(get_current_user)):
        if allowed_roles and not has_role(current_user, *allowed_roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden"
            )
        return current_user
    return _checker

# Authorization policies
admin_only = role_required(UserRole.ADMIN)
vendor_only = role_required(UserRole.VENDOR)
customer_only = role_required(UserRole.CUSTOMER)
vendor_or_admin = role_required(UserRole.VENDOR, UserRole.ADMIN)
