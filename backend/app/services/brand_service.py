from datetime import timedelta
from typing import List, Optional, Tuple

from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session
import logging

from app.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from app.core.security import generate_password, get_password_hash
from app.models import Brand, Campaign
from app.models.common import utcnow
from app.schemas.brand import BrandOverview, BrandRegister, BrandStats, BrandUpdate, DeletedBrand
from app.schemas.common import Pagination, bucket_counts
from app.services.common import ensure_valid_id, paginate, parse_bool
from app.services.notifications.notifier import Notifier

logger = logging.getLogger(__name__)

REQUIREMENT_FIELDS = (
    "role", "platforms", "brand_name", "email", "brand_phone",
    "influencers_min", "influencers_max", "followers_range", "location",
    "additional_locations", "post_frequency", "post_duration",
    "avg_influencers", "post_count", "cost_per_influencer_per_post",
    "total_base_cost", "platform_fee", "total_cost",
)


def like_literal(value: str) -> str:
    """Escape LIKE wildcards so ``value`` only matches itself"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def json_list_contains_any(column, values: List[str]):
    """Match rows whose JSON list column holds any of ``values``"""
    text = cast(column, String)
    return or_(*[text.like(f'%"{like_literal(value)}"%', escape="\\") for value in values])


class BrandService:
    @staticmethod
    def register(db: Session, notifier: Notifier, data: BrandRegister) -> Brand:
        """
        Create a brand account and the campaign described by its sign-up form.

        A random password is generated and mailed to the brand.
        """
        email = data.email.lower()
        duplicate = db.query(Brand).filter(
            or_(Brand.email == email, func.lower(Brand.brand_name) == data.brand_name.lower())
        ).first()
        if duplicate:
            raise ConflictError("This brand has already been registered")

        password = generate_password()
        fields = data.model_dump()
        fields["email"] = email
        brand = Brand(**fields, hashed_password=get_password_hash(password))
        db.add(brand)
        db.flush()

        campaign = Campaign(
            user_id=brand.id,
            **{name: getattr(brand, name) for name in REQUIREMENT_FIELDS},
            has_paid=False,
            is_validated=False,
        )
        db.add(campaign)
        db.commit()
        db.refresh(brand)

        logger.info(f"Registered brand {brand.id} ({brand.brand_name}) with campaign {campaign.id}")
        notifier.brand_registered(brand, password)
        return brand

    @staticmethod
    def list_brands(
        db: Session,
        page: int = 1,
        limit: int = None,
        has_paid: Optional[str] = None,
        is_validated: Optional[str] = None,
        platforms: Optional[str] = None,
        location: Optional[str] = None,
    ) -> Tuple[List[Brand], Pagination]:
        query = db.query(Brand)
        if has_paid is not None:
            query = query.filter(Brand.has_paid == parse_bool(has_paid))
        if is_validated is not None:
            query = query.filter(Brand.is_validated == parse_bool(is_validated))
        if platforms:
            query = query.filter(json_list_contains_any(Brand.platforms, platforms.split(",")))
        if location:
            query = query.filter(Brand.location.ilike(f"%{location}%"))
        return paginate(query.order_by(Brand.created_at.desc()), page, limit)

    @staticmethod
    def get_brand(db: Session, brand_id: str) -> Brand:
        ensure_valid_id(brand_id, "brand ID")
        brand = db.query(Brand).filter(Brand.id == brand_id).first()
        if not brand:
            raise NotFoundError("Brand not found")
        return brand

    @staticmethod
    def check_access(brand_id: str, user_id: str, role: str):
        if role != "admin" and user_id != brand_id:
            raise PermissionDeniedError("Access denied. You can only access your own resources.")

    @staticmethod
    def update_details(db: Session, brand_id: str, data: BrandUpdate) -> Brand:
        brand = BrandService.get_brand(db, brand_id)
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None and v != ""}
        if not updates:
            raise ValidationError("No valid fields to update")

        minimum = updates.get("influencers_min", brand.influencers_min)
        maximum = updates.get("influencers_max", brand.influencers_max)
        if minimum > maximum:
            raise ValidationError("Minimum influencers cannot be greater than maximum")

        for field, value in updates.items():
            setattr(brand, field, value)
        db.commit()
        db.refresh(brand)
        return brand

    @staticmethod
    def set_validation_status(db: Session, brand_id: str, is_validated: bool) -> Brand:
        brand = BrandService.get_brand(db, brand_id)
        brand.is_validated = is_validated
        db.commit()
        db.refresh(brand)
        return brand

    @staticmethod
    def delete_brand(db: Session, brand_id: str) -> DeletedBrand:
        brand = BrandService.get_brand(db, brand_id)
        deleted = DeletedBrand.model_validate(brand)
        db.delete(brand)
        db.commit()
        logger.info(f"Deleted brand {brand_id}")
        return deleted

    @staticmethod
    def stats(db: Session) -> BrandStats:
        since = utcnow() - timedelta(days=30)
        rows = db.query(Brand.platforms, Brand.location).all()
        return BrandStats(
            overview=BrandOverview(
                total_brands=db.query(Brand).count(),
                paid_brands=db.query(Brand).filter(Brand.has_paid.is_(True)).count(),
                validated_brands=db.query(Brand).filter(Brand.is_validated.is_(True)).count(),
                recent_brands=db.query(Brand).filter(Brand.created_at >= since).count(),
            ),
            platform_distribution=bucket_counts([p for platforms, _ in rows for p in (platforms or [])]),
            top_locations=bucket_counts([location for _, location in rows], limit=10),
        )
