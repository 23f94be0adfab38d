# salonbook/routers/merchants_routes.py

from typing import List

from fastapi import APIRouter, Depends

from salonbook import staff
from salonbook.booking import Actor
from salonbook.core import resolve_timezone
from salonbook.config import get_settings
from salonbook.deps import get_actor, get_repo, require_merchant, require_staff
from salonbook.errors import NotFound
from salonbook.models import Client
from salonbook.repository import SQLModelRepository
from salonbook.schemas import ClientCreate, ClientPublic, MerchantPublic, MerchantSettingsUpdate

router = APIRouter(
    tags=["merchants"],
)


@router.get("/merchants/me", response_model=MerchantPublic)
def my_merchant(
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    merchant = repo.get_merchant(actor.merchant_id)
    if merchant is None:
        raise NotFound("Merchant not found")
    return merchant


@router.patch("/merchants/me/settings", response_model=MerchantPublic)
def update_settings(
    body: MerchantSettingsUpdate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    merchant = repo.get_merchant(actor.merchant_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("timezone"):
        resolve_timezone(changes["timezone"], get_settings().DEFAULT_TIMEZONE)
    return staff.update_merchant_settings(repo, merchant, changes)


@router.get("/clients", response_model=List[ClientPublic])
def list_clients(
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    return repo.get_clients_by_merchant(actor.merchant_id)


@router.post("/clients", response_model=ClientPublic, status_code=201)
def create_client(
    body: ClientCreate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_staff),
):
    # walk-in clients have no login
    return repo.save(Client(merchant_id=actor.merchant_id, name=body.name, phone=body.phone, email=body.email))
