# backend/routes/settings.py
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from database import get_db
from models.log import LOG_FAIL
from models.users import User
from schemas.user import PasswordChange, ProfileUpdate
from utils.audit import client_ip, write_log
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import customer_only

router = APIRouter(prefix="/customer/settings", tags=["Settings"])


@router.get("")
def get_settings(current_user: User = Depends(customer_only)):
    return {"name": current_user.name, "email": current_user.email}


# Change display name and email; the email must stay unique
@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    email = payload.email.strip().lower()
    taken = (
        db.query(User)
        .filter(func.lower(User.email) == email, User.id != current_user.id)
        .first()
    )
    if taken:
        raise HTTPException(status_code=400, detail="Email already in use")

    current_user.name = payload.name.strip()
    current_user.email = email
    db.commit()
    db.refresh(current_user)

    write_log(db, user_id=current_user.id, action="PROFILE_UPDATE", resource="users",
              ip=client_ip(request), meta={"email": email})
    return {"message": "Profile updated", "name": current_user.name, "email": current_user.email}


@router.put("/security")
def change_password(
    payload: PasswordChange,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    if not payload.current_password or not payload.new_password:
        raise HTTPException(status_code=400, detail="Both current and new password are required")

    if not verify_password(payload.current_password, current_user.password_hash):
        write_log(db, user_id=current_user.id, action="PASSWORD_CHANGE", resource="users",
                  status=LOG_FAIL, ip=client_ip(request))
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    current_user.password_hash = get_password_hash(payload.new_password)
    db.commit()

    write_log(db, user_id=current_user.id, action="PASSWORD_CHANGE", resource="users", ip=client_ip(request))
    return {"message": "Password changed"}


# Delete the account together with its addresses, reviews and cart
@router.delete("")
def delete_account(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    user_id = current_user.id
    db.delete(current_user)
    db.commit()

    write_log(db, user_id=None, action="ACCOUNT_DELETE", resource="users",
              ip=client_ip(request), meta={"user_id": user_id})
    return {"message": "Account deleted"}
