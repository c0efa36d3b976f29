from typing import List

from sqlalchemy.orm import Session
import logging

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.security import generate_password, get_password_hash
from app.models import Admin
from app.schemas.admin import AdminCreate, AdminUpdate
from app.services.common import ensure_valid_id
from app.services.notifications.notifier import Notifier

logger = logging.getLogger(__name__)


class AdminService:
    @staticmethod
    def create(db: Session, notifier: Notifier, data: AdminCreate) -> Admin:
        """Create an admin with a generated password and mail the login details"""
        email = data.email.lower()
        if db.query(Admin).filter(Admin.email == email).first():
            raise ConflictError("An admin with this email already exists")

        password = generate_password()
        admin = Admin(
            name=data.name,
            email=email,
            phone_number=data.phone_number,
            hashed_password=get_password_hash(password),
        )
        db.add(admin)
        db.commit()
        db.refresh(admin)

        logger.info(f"Created admin {admin.id}")
        notifier.admin_onboarded(admin, password)
        return admin

    @staticmethod
    def list_admins(db: Session) -> List[Admin]:
        return db.query(Admin).order_by(Admin.created_at.desc()).all()

    @staticmethod
    def get_admin(db: Session, admin_id: str) -> Admin:
        ensure_valid_id(admin_id, "admin ID")
        admin = db.query(Admin).filter(Admin.id == admin_id).first()
        if not admin:
            raise NotFoundError("Admin not found")
        return admin

    @staticmethod
    def update(db: Session, admin_id: str, data: AdminUpdate) -> Admin:
        admin = AdminService.get_admin(db, admin_id)
        updates = data.model_dump(exclude_unset=True, exclude_none=True)
        if not updates:
            raise ValidationError("No valid fields to update")

        if "email" in updates:
            updates["email"] = updates["email"].lower()
            taken = db.query(Admin).filter(Admin.email == updates["email"], Admin.id != admin.id).first()
            if taken:
                raise ConflictError("An admin with this email already exists")
        if "password" in updates:
            admin.hashed_password = get_password_hash(updates.pop("password"))

        for field, value in updates.items():
            setattr(admin, field, value)
        db.commit()
        db.refresh(admin)
        return admin

    @staticmethod
    def delete(db: Session, admin_id: str):
        admin = AdminService.get_admin(db, admin_id)
        db.delete(admin)
        db.commit()
        logger.info(f"Deleted admin {admin_id}")
