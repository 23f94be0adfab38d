# salonbook/deps.py

from fastapi import Depends, HTTPException
from sqlmodel import Session

from salonbook.auth import get_current_user
from salonbook.booking import Actor
from salonbook.db import get_session
from salonbook.models import UserRole
from salonbook.repository import SQLModelRepository


def require_role(actor: Actor, *roles: UserRole) -> Actor:
    if actor.role not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")
    return actor


def get_repo(session: Session = Depends(get_session)) -> SQLModelRepository:
    return SQLModelRepository(session)


def get_actor(current_user: dict = Depends(get_current_user)) -> Actor:
    if current_user["merchant_id"] is None:
        raise HTTPException(status_code=403, detail="Account is not attached to a merchant")
    return Actor(
        role=UserRole(current_user["role"]),
        merchant_id=current_user["merchant_id"],
        user_id=current_user["id"],
        employee_id=current_user["employee_id"],
        client_id=current_user["client_id"],
        email=current_user["email"],
    )


def require_staff(actor: Actor = Depends(get_actor)) -> Actor:
    return require_role(actor, UserRole.merchant, UserRole.employee)


def require_merchant(actor: Actor = Depends(get_actor)) -> Actor:
    return require_role(actor, UserRole.merchant)


def require_employee(actor: Actor = Depends(get_actor)) -> Actor:
    if actor.employee_id is None:
        raise HTTPException(status_code=403, detail="Forbidden")
    return require_role(actor, UserRole.employee)
