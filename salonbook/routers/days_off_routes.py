# salonbook/routers/days_off_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from salonbook import staff
from salonbook.booking import Actor
from salonbook.deps import get_repo, require_merchant, require_staff
from salonbook.repository import SQLModelRepository
from salonbook.schemas import DayOffCreate, DayOffPublic

router = APIRouter(
    prefix="/days-off",
    tags=["days-off"],
)


@router.get("", response_model=List[DayOffPublic])
def list_days_off(
    employee_id: Optional[int] = None,
    day: Optional[date] = Query(default=None, alias="date"),
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    return repo.get_days_off(actor.merchant_id, employee_id=employee_id, day=day)


@router.post("", response_model=DayOffPublic, status_code=201)
def create_day_off(
    body: DayOffCreate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    return staff.add_day_off(repo, actor.merchant_id, body.employee_id, body.date, reason=body.reason)


@router.delete("/{day_off_id}", status_code=204)
def delete_day_off(
    day_off_id: int,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    staff.remove_day_off(repo, actor.merchant_id, day_off_id)
