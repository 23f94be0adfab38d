# salonbook/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from salonbook.db import get_session
from salonbook.models import Client, Employee, Merchant, User, UserRole
from salonbook.schemas import UserCreate, UserPublic
from salonbook.auth import get_current_user, hash_password

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


def _require_merchant(session: Session, merchant_id) -> Merchant:
    if merchant_id is None:
        raise HTTPException(status_code=422, detail="merchant_id is required")
    merchant = session.get(Merchant, merchant_id)
    if merchant is None:
        raise HTTPException(status_code=404, detail="Merchant not found")
    return merchant


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # 1) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    db_user = User(
        email=user.email,
        password_hash=hash_password(user.password),
        role=user.role,
    )

    # 2) Attach the account to its merchant, employee or client record
    if user.role == UserRole.merchant:
        merchant = Merchant(name=user.name, email=user.email)
        session.add(merchant)
        session.flush()
        db_user.merchant_id = merchant.id

    elif user.role == UserRole.employee:
        merchant = _require_merchant(session, user.merchant_id)
        employee = session.get(Employee, user.employee_id) if user.employee_id is not None else None
        if employee is None or employee.merchant_id != merchant.id:
            raise HTTPException(status_code=404, detail="Employee not found")
        if employee.email is not None and employee.email != user.email:
            raise HTTPException(status_code=403, detail="Email does not match the employee record")
        claimed = session.exec(
            select(User).where(User.employee_id == employee.id)
        ).first()
        if claimed is not None:
            raise HTTPException(status_code=409, detail="Employee already has an account")
        employee.email = user.email
        session.add(employee)
        db_user.merchant_id = merchant.id
        db_user.employee_id = employee.id

    else:
        merchant = _require_merchant(session, user.merchant_id)
        if not user.phone:
            raise HTTPException(status_code=422, detail="phone is required for clients")
        client = Client(merchant_id=merchant.id, name=user.name, phone=user.phone, email=user.email)
        session.add(client)
        session.flush()
        db_user.merchant_id = merchant.id
        db_user.client_id = client.id

    # 3) Create user in DB
    session.add(db_user)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    session.refresh(db_user)  # fills db_user.id

    logger.info(f"Created {user.role.value} account {db_user.id}")
    return db_user
