# backend/routes/addresses.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models.address import ShippingAddress
from models.users import User, UserRole
from schemas.address import AddressIn, AddressOut
from services.orders import get_owned_address
from utils.audit import client_ip, write_log
from utils.tokenJWT import customer_only, get_current_user, has_role

# Customer address book
router = APIRouter(prefix="/customer/addresses", tags=["Addresses"])

# Resource API
api_router = APIRouter(prefix="/api/shipping-addresses", tags=["Addresses"])


def _user_addresses(db: Session, user_id: int) -> List[ShippingAddress]:
    return (
        db.query(ShippingAddress)
        .filter(ShippingAddress.user_id == user_id)
        .order_by(ShippingAddress.id.asc())
        .all()
    )


def _create(db: Session, user_id: int, payload: AddressIn) -> ShippingAddress:
    address = ShippingAddress(user_id=user_id, **payload.model_dump())
    db.add(address)
    db.commit()
    db.refresh(address)
    return address


def _update(db: Session, address: ShippingAddress, payload: AddressIn) -> ShippingAddress:
    for field, value in payload.model_dump().items():
        setattr(address, field, value)
    db.commit()
    db.refresh(address)
    return address


# Addresses visible to the caller: own ones, or any for an admin
def _visible_address(db: Session, address_id: int, user: User) -> ShippingAddress:
    if has_role(user, UserRole.ADMIN):
        address = db.query(ShippingAddress).filter(ShippingAddress.id == address_id).first()
        if not address:
            raise HTTPException(status_code=404, detail="Address not found")
        return address
    return get_owned_address(db, address_id, user.id)


# ---- CUSTOMER ----

@router.get("", response_model=List[AddressOut])
def list_addresses(
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    return _user_addresses(db, current_user.id)


@router.post("", response_model=AddressOut, status_code=status.HTTP_201_CREATED)
def create_address(
    payload: AddressIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    address = _create(db, current_user.id, payload)
    write_log(db, user_id=current_user.id, action="ADDRESS_CREATE", resource="addresses",
              ip=client_ip(request), meta={"address_id": address.id})
    return address


@router.put("/{address_id}", response_model=AddressOut)
def update_address(
    address_id: int,
    payload: AddressIn,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    address = _update(db, get_owned_address(db, address_id, current_user.id), payload)
    write_log(db, user_id=current_user.id, action="ADDRESS_UPDATE", resource="addresses",
              ip=client_ip(request), meta={"address_id": address_id})
    return address


@router.delete("/{address_id}")
def delete_address(
    address_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(customer_only),
):
    address = get_owned_address(db, address_id, current_user.id)
    db.delete(address)
    db.commit()
    write_log(db, user_id=current_user.id, action="ADDRESS_DELETE", resource="addresses",
              ip=client_ip(request), meta={"address_id": address_id})
    return {"message": "Address deleted"}


# ---- RESOURCE API ----

@api_router.post("", response_model=AddressOut, status_code=status.HTTP_201_CREATED)
def api_create_address(
    payload: AddressIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _create(db, current_user.id, payload)


@api_router.get("/user/{user_id}", response_model=List[AddressOut])
def api_addresses_by_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if user_id != current_user.id and not has_role(current_user, UserRole.ADMIN):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return _user_addresses(db, user_id)


@api_router.get("/{address_id}", response_model=AddressOut)
def api_get_address(
    address_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _visible_address(db, address_id, current_user)


@api_router.put("/{address_id}", response_model=AddressOut)
def api_update_address(
    address_id: int,
    payload: AddressIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _update(db, _visible_address(db, address_id, current_user), payload)


@api_router.delete("/{address_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_address(
    address_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    address = _visible_address(db, address_id, current_user)
    db.delete(address)
    db.commit()
