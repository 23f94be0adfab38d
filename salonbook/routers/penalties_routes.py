# salonbook/routers/penalties_routes.py

from typing import List

from fastapi import APIRouter, Depends

from salonbook import booking
from salonbook.booking import Actor
from salonbook.deps import get_actor, get_repo, require_staff
from salonbook.models import UserRole
from salonbook.repository import SQLModelRepository
from salonbook.schemas import PenaltyPublic, PenaltyStatusUpdate

router = APIRouter(
    prefix="/penalties",
    tags=["penalties"],
)


@router.get("", response_model=List[PenaltyPublic])
def list_penalties(
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    # clients only see their own
    if actor.role == UserRole.client:
        return repo.get_penalties_by_client(actor.client_id)
    return repo.get_penalties_by_merchant(actor.merchant_id)


@router.patch("/{penalty_id}", response_model=PenaltyPublic)
def update_penalty(
    penalty_id: int,
    body: PenaltyStatusUpdate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    return booking.set_penalty_status(repo, actor, penalty_id, body.status)
