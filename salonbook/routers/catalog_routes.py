# salonbook/routers/catalog_routes.py

from typing import List

from fastapi import APIRouter, Depends

from salonbook import catalog
from salonbook.booking import Actor
from salonbook.deps import get_actor, get_repo, require_merchant
from salonbook.pricing import price_for
from salonbook.repository import SQLModelRepository
from salonbook.schemas import (
    PriceQuotePublic,
    PromotionCreate,
    PromotionPublic,
    PromotionUpdate,
    ServiceCreate,
    ServiceDeleted,
    ServicePublic,
    ServiceUpdate,
    ServiceWithPrice,
)

router = APIRouter(
    tags=["catalog"],
)


@router.get("/services", response_model=List[ServiceWithPrice])
def list_services(
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    return [
        {
            **service.model_dump(),
            "has_promotion": quote.has_promotion,
            "effective_price": quote.effective_price,
            "promotion": quote.promotion,
        }
        for service, quote in catalog.services_with_prices(repo, actor.merchant_id)
    ]


@router.post("/services", response_model=ServicePublic, status_code=201)
def create_service(
    body: ServiceCreate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    return catalog.create_service(
        repo, actor.merchant_id, body.name, body.duration, body.price, is_active=body.is_active
    )


@router.put("/services/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    body: ServiceUpdate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    return catalog.update_service(repo, actor.merchant_id, service_id, body.model_dump(exclude_unset=True))


@router.get("/services/{service_id}/price", response_model=PriceQuotePublic)
def service_price(
    service_id: int,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(get_actor),
):
    catalog.get_service_for_merchant(repo, actor.merchant_id, service_id)
    quote = price_for(repo, service_id)
    return {
        "service_id": service_id,
        "has_promotion": quote.has_promotion,
        "original_price": quote.original_price,
        "effective_price": quote.effective_price,
        "promotion": quote.promotion,
    }


@router.delete("/services/{service_id}", response_model=ServiceDeleted)
def delete_service(
    service_id: int,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    deleted = catalog.delete_service(repo, actor.merchant_id, service_id)
    return {"service_id": service_id, "deleted_appointments": deleted}


@router.post("/promotions", response_model=PromotionPublic, status_code=201)
def create_promotion(
    body: PromotionCreate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    return catalog.create_promotion(
        repo,
        actor.merchant_id,
        body.name,
        body.discount_type,
        body.discount_value,
        body.start_date,
        body.end_date,
        service_id=body.service_id,
        is_active=body.is_active,
    )


@router.get("/promotions", response_model=List[PromotionPublic])
def list_promotions(
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    return catalog.list_promotions(repo, actor.merchant_id)


@router.put("/promotions/{promotion_id}", response_model=PromotionPublic)
def update_promotion(
    promotion_id: int,
    body: PromotionUpdate,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    return catalog.update_promotion(repo, actor.merchant_id, promotion_id, body.model_dump(exclude_unset=True))


@router.delete("/promotions/{promotion_id}", status_code=204)
def delete_promotion(
    promotion_id: int,
    repo: SQLModelRepository = Depends(get_repo),
    actor: Actor = Depends(require_merchant),
):
    catalog.delete_promotion(repo, actor.merchant_id, promotion_id)
