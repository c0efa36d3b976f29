from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from app.api.deps import CurrentUser, get_notifier, require_admin
from app.db.session import get_db
from app.schemas.admin import AdminCreate, AdminOut, AdminUpdate
from app.schemas.common import APIResponse, MessageResponse
from app.services.admin_service import AdminService
from app.services.notifications.notifier import Notifier

router = APIRouter()


@router.post("/createAdmin", status_code=201, response_model=APIResponse[AdminOut])
def create_admin(
    admin_data: AdminCreate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier)
):
    """Create another admin; the generated password is emailed to them"""
    created = AdminService.create(db, notifier, admin_data)
    return APIResponse(message="Admin created successfully", data=AdminOut.model_validate(created))


@router.get("/all-admins", response_model=APIResponse[List[AdminOut]])
def list_admins(
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return APIResponse(data=[AdminOut.model_validate(a) for a in AdminService.list_admins(db)])


@router.get("/{admin_id}", response_model=APIResponse[AdminOut])
def get_admin(
    admin_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    return APIResponse(data=AdminOut.model_validate(AdminService.get_admin(db, admin_id)))


@router.put("/update/{admin_id}", response_model=APIResponse[AdminOut])
def update_admin(
    admin_id: str,
    updates: AdminUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    updated = AdminService.update(db, admin_id, updates)
    return APIResponse(message="Admin updated successfully", data=AdminOut.model_validate(updated))


@router.delete("/{admin_id}", response_model=MessageResponse)
def delete_admin(
    admin_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    AdminService.delete(db, admin_id)
    return MessageResponse(message="Admin deleted successfully")
