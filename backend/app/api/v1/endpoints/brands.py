from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from app.api.deps import CurrentUser, get_current_user, get_notifier, require_admin
from app.core.rate_limiting import RATE_LIMITS, limiter
from app.db.session import get_db
from app.schemas.brand import (
    BrandOut, BrandPage, BrandRegister, BrandStats, BrandUpdate, DeletedBrand, ValidationStatusUpdate,
)
from app.schemas.common import APIResponse
from app.services.brand_service import BrandService
from app.services.notifications.notifier import Notifier

router = APIRouter()


@router.post("/register", status_code=201, response_model=APIResponse[BrandOut])
@limiter.limit(RATE_LIMITS["auth_register"])
def register_brand(
    request: Request,
    brand_data: BrandRegister,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """
    Register a brand together with its first campaign.

    Login credentials are generated and sent to the brand's email.
    """
    brand = BrandService.register(db, notifier, brand_data)
    return APIResponse(
        message="Brand registered successfully. Login details have been sent to your email.",
        data=BrandOut.model_validate(brand),
    )


@router.get("/all-brands", response_model=APIResponse[BrandPage])
def list_brands(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    has_paid: Optional[str] = Query(None, alias="hasPaid"),
    is_validated: Optional[str] = Query(None, alias="isValidated"),
    platforms: Optional[str] = None,
    location: Optional[str] = None,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    brands, pagination = BrandService.list_brands(
        db, page, limit, has_paid=has_paid, is_validated=is_validated, platforms=platforms, location=location
    )
    return APIResponse(
        data=BrandPage(brands=[BrandOut.model_validate(b) for b in brands], pagination=pagination)
    )


@router.get("/brand-stats", response_model=APIResponse[BrandStats])
def brand_stats(
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return APIResponse(data=BrandService.stats(db))


@router.get("/{brand_id}", response_model=APIResponse[BrandOut])
def get_brand(
    brand_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    brand = BrandService.get_brand(db, brand_id)
    BrandService.check_access(brand.id, current_user.id, current_user.role)
    return APIResponse(data=BrandOut.model_validate(brand))


@router.put("/update/{brand_id}", response_model=APIResponse[BrandOut])
def update_brand(
    brand_id: str,
    updates: BrandUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    BrandService.check_access(brand_id, current_user.id, current_user.role)
    brand = BrandService.update_details(db, brand_id, updates)
    return APIResponse(message="Brand details updated successfully", data=BrandOut.model_validate(brand))


@router.put("/{brand_id}/validation-status", response_model=APIResponse[BrandOut])
def update_validation_status(
    brand_id: str,
    payload: ValidationStatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    brand = BrandService.set_validation_status(db, brand_id, payload.is_validated)
    state = "validated" if brand.is_validated else "unvalidated"
    return APIResponse(message=f"Brand {state} successfully", data=BrandOut.model_validate(brand))


@router.delete("/delete/{brand_id}", response_model=APIResponse[DeletedBrand])
def delete_brand(
    brand_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    deleted = BrandService.delete_brand(db, brand_id)
    return APIResponse(message="Brand deleted successfully", data=deleted)
