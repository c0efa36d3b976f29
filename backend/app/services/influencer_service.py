"""
Influencer accounts: multipart registration with proof uploads, profile
management, admin review and bank details.
"""

import asyncio
import json
import re
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from email_validator import EmailNotValidError, validate_email
from pydantic.alias_generators import to_camel
from sqlalchemy import or_
from sqlalchemy.orm import Session
import logging

from app.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from app.core.security import generate_password, get_password_hash
from app.models import Influencer
from app.models.common import is_valid_id, utcnow
from app.models.influencer import INFLUENCER_STATUSES, SOCIAL_PLATFORMS
from app.schemas.common import Pagination, bucket_counts
from app.schemas.influencer import (
    INFLUENCER_NICHES, BankDetailsIn, DeletedInfluencer, EarningsOverview, InfluencerOverview, InfluencerStats,
    InfluencerUpdate,
)
from app.services.common import ensure_valid_id, paginate
from app.services.notifications.notifier import Notifier
from app.services.storage import CloudinaryUploader, UploadedFile, check_upload

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "email", "phone", "whatsapp", "location")

NUMERIC_FIELDS = (
    "male_percentage", "female_percentage",
    "follower_fee", "impression_fee", "location_fee", "niche_fee",
    "earnings_per_post", "earnings_per_post_naira",
    "max_monthly_earnings", "max_monthly_earnings_naira",
)

PLATFORM_LABELS = {
    "instagram": "Instagram",
    "twitter": "Twitter",
    "tiktok": "TikTok",
    "youtube": "YouTube",
    "facebook": "Facebook",
    "linkedin": "LinkedIn",
    "threads": "Threads",
    "discord": "Discord",
    "snapchat": "Snapchat",
}

URL_PATTERN = re.compile(r"^https?://.+")


def parse_form(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Form values holding JSON objects or arrays are decoded; everything else stays a string"""
    parsed = {}
    for key, value in fields.items():
        if isinstance(value, str):
            try:
                decoded = json.loads(value)
            except ValueError:
                decoded = None
            if isinstance(decoded, (dict, list)):
                value = decoded
        parsed[key] = value
    return parsed


def _number(value, default=0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _proof_file(files: Dict[str, UploadedFile], platform: str) -> Optional[UploadedFile]:
    for key in (f"{platform}[proof]", f"{platform}.proof", f"{platform}Proof", f"{platform}_proof",
                platform, f"proof_{platform}"):
        if key in files:
            return files[key]
    return None


def _audience_proof_file(files: Dict[str, UploadedFile]) -> Optional[UploadedFile]:
    for key in ("audienceProof", "audience_proof", "audience.proof", "audienceproof"):
        if key in files:
            return files[key]
    return None


def _platform_entry(platform: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    followers, url, impressions = data.get("followers"), data.get("url"), data.get("impressions")
    if not (followers and url and impressions):
        return None
    if _number(followers, -1) < 0:
        raise ValidationError(f"Invalid followers count for {platform}")
    if not URL_PATTERN.match(str(url)):
        raise ValidationError(f"Invalid URL format for {platform}")
    if _number(impressions, -1) < 0:
        raise ValidationError(f"Invalid impressions count for {platform}")
    return {"followers": int(_number(followers)), "url": url, "impressions": int(_number(impressions))}


class InfluencerService:
    @staticmethod
    async def create(
        db: Session,
        notifier: Notifier,
        uploader: CloudinaryUploader,
        fields: Dict[str, Any],
        files: Dict[str, UploadedFile],
    ) -> Influencer:
        """
        Register an influencer from a multipart form.

        Every platform with followers, url and impressions filled needs a
        proof file; proofs and the optional audience proof are uploaded
        before the record is written. The account starts pending.
        """
        body = parse_form(fields)

        missing = [name for name in REQUIRED_FIELDS if not body.get(name)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        try:
            email = validate_email(str(body["email"]), check_deliverability=False).normalized.lower()
        except EmailNotValidError:
            raise ValidationError("Invalid email format")

        niches = body.get("niches")
        if isinstance(niches, str):
            raise ValidationError("Invalid niches format")
        if not isinstance(niches, list) or not niches:
            raise ValidationError("At least one niche must be selected")
        invalid = [n for n in niches if n not in INFLUENCER_NICHES]
        if invalid:
            raise ValidationError(f"Invalid niche selected: {', '.join(map(str, invalid))}")

        if db.query(Influencer).filter(Influencer.email == email).first():
            raise ConflictError("An influencer with this email already exists")

        platforms: Dict[str, Dict[str, Any]] = {}
        uploads: List[Tuple[str, UploadedFile, str]] = []
        for platform in SOCIAL_PLATFORMS:
            data = body.get(platform)
            if not isinstance(data, dict):
                continue
            entry = _platform_entry(platform, data)
            if entry is None:
                continue
            proof = _proof_file(files, platform)
            if proof is None:
                raise ValidationError(f"Proof file is required for {platform}")
            check_upload(proof.filename, proof.content_type, len(proof.content))
            platforms[platform] = entry
            uploads.append((platform, proof, f"influencer-proofs/{platform}"))

        audience_proof = _audience_proof_file(files)
        if audience_proof is not None:
            check_upload(audience_proof.filename, audience_proof.content_type, len(audience_proof.content))
            uploads.append(("audience", audience_proof, "influencer-proofs/audience"))

        urls = await asyncio.gather(*[
            uploader.upload(f.content, f.filename, f.content_type, folder) for _, f, folder in uploads
        ])
        audience_proof_url = None
        for (target, _, _), url in zip(uploads, urls):
            if target == "audience":
                audience_proof_url = url
            else:
                platforms[target]["proofUrl"] = url

        password = generate_password()
        influencer = Influencer(
            name=str(body["name"]).strip(),
            email=email,
            phone=str(body["phone"]),
            whatsapp=str(body["whatsapp"]),
            location=str(body["location"]).strip(),
            niches=niches,
            audience_location=body.get("audienceLocation"),
            audience_proof_url=audience_proof_url,
            platforms=platforms,
            hashed_password=get_password_hash(password),
            status="pending",
            followers_count=int(_number(body.get("followersCount"))),
            **{name: _number(body.get(to_camel(name))) for name in NUMERIC_FIELDS},
        )
        db.add(influencer)
        db.commit()
        db.refresh(influencer)
        logger.info(f"Registered influencer {influencer.id} with {len(platforms)} platform(s)")

        if notifier.influencer_registered(influencer, password):
            influencer.email_sent = True
            db.commit()
        return influencer

    @staticmethod
    def list_influencers(
        db: Session,
        page: int = 1,
        limit: int = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Tuple[List[Influencer], Pagination]:
        query = db.query(Influencer)
        if status in INFLUENCER_STATUSES:
            query = query.filter(Influencer.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Influencer.name.ilike(pattern),
                Influencer.email.ilike(pattern),
                Influencer.location.ilike(pattern),
            ))
        return paginate(query.order_by(Influencer.created_at.desc()), page, limit)

    @staticmethod
    def get_influencer(db: Session, influencer_id: str) -> Influencer:
        ensure_valid_id(influencer_id, "influencer ID")
        influencer = db.query(Influencer).filter(Influencer.id == influencer_id).first()
        if not influencer:
            raise NotFoundError("Influencer not found")
        return influencer

    @staticmethod
    def update(db: Session, influencer_id: str, user_id: str, role: str, data: InfluencerUpdate) -> Influencer:
        influencer = InfluencerService.get_influencer(db, influencer_id)
        if role != "admin" and user_id != influencer.id:
            raise PermissionDeniedError("You can only update your own profile")

        updates = data.model_dump(exclude_unset=True)
        if not updates:
            raise ValidationError("No valid fields to update")

        if "platforms" in updates:
            merged = dict(influencer.platforms or {})
            for platform, stats in data.platforms.items():
                if platform not in SOCIAL_PLATFORMS:
                    raise ValidationError(f"Unknown platform: {platform}")
                entry = stats.model_dump(by_alias=True, exclude_none=True)
                if "proofUrl" not in entry and platform in merged:
                    entry["proofUrl"] = merged[platform].get("proofUrl")
                merged[platform] = entry
            updates["platforms"] = merged

        for field, value in updates.items():
            setattr(influencer, field, value)
        db.commit()
        db.refresh(influencer)
        return influencer

    @staticmethod
    def set_status(db: Session, notifier: Notifier, influencer_id: str, status: str) -> Influencer:
        influencer = InfluencerService.get_influencer(db, influencer_id)
        influencer.status = status
        db.commit()
        db.refresh(influencer)
        notifier.influencer_status_changed(influencer, status)
        return influencer

    @staticmethod
    def bulk_set_status(db: Session, influencer_ids: List[str], status: str) -> Tuple[int, int]:
        """Returns (matched, modified)"""
        invalid = [i for i in influencer_ids if not is_valid_id(i)]
        if invalid:
            raise ValidationError(f"Invalid influencer ID format: {', '.join(map(str, invalid))}")

        matched = db.query(Influencer).filter(Influencer.id.in_(influencer_ids)).count()
        modified = db.query(Influencer).filter(
            Influencer.id.in_(influencer_ids),
            Influencer.status != status,
        ).update({Influencer.status: status, Influencer.updated_at: utcnow()}, synchronize_session=False)
        db.commit()
        return matched, modified

    @staticmethod
    async def delete(db: Session, uploader: CloudinaryUploader, influencer_id: str) -> DeletedInfluencer:
        influencer = InfluencerService.get_influencer(db, influencer_id)
        deleted = DeletedInfluencer.model_validate(influencer)
        proof_urls = [data.get("proofUrl") for data in (influencer.platforms or {}).values()]
        proof_urls.append(influencer.audience_proof_url)

        db.delete(influencer)
        db.commit()
        logger.info(f"Deleted influencer {influencer_id}")

        await asyncio.gather(*[uploader.destroy(url) for url in proof_urls if url])
        return deleted

    @staticmethod
    def stats(db: Session) -> InfluencerStats:
        since = utcnow() - timedelta(days=30)
        by_status = {
            status: db.query(Influencer).filter(Influencer.status == status).count()
            for status in INFLUENCER_STATUSES
        }
        rows = db.query(Influencer.platforms, Influencer.location, Influencer.niches).all()
        platforms = [
            PLATFORM_LABELS.get(name, name)
            for stored, _, _ in rows
            for name, data in (stored or {}).items()
            if data and data.get("followers")
        ]

        earnings = db.query(Influencer.earnings_per_post, Influencer.max_monthly_earnings).filter(
            Influencer.status == "approved",
            Influencer.earnings_per_post > 0,
        ).all()
        if earnings:
            per_post = [row[0] for row in earnings]
            monthly = [row[1] or 0 for row in earnings]
            earnings_overview = EarningsOverview(
                avg_earnings_per_post=sum(per_post) / len(per_post),
                max_earnings_per_post=max(per_post),
                min_earnings_per_post=min(per_post),
                avg_max_monthly_earnings=sum(monthly) / len(monthly),
            )
        else:
            earnings_overview = EarningsOverview()

        return InfluencerStats(
            overview=InfluencerOverview(
                total_influencers=db.query(Influencer).count(),
                pending_influencers=by_status["pending"],
                approved_influencers=by_status["approved"],
                rejected_influencers=by_status["rejected"],
                recent_influencers=db.query(Influencer).filter(Influencer.created_at >= since).count(),
            ),
            platform_distribution=bucket_counts(platforms),
            top_locations=bucket_counts([location for _, location, _ in rows], limit=10),
            top_niches=bucket_counts([n for _, _, niches in rows for n in (niches or [])], limit=10),
            earnings_overview=earnings_overview,
        )

    # Bank details

    @staticmethod
    def get_bank_details(db: Session, influencer_id: str) -> Influencer:
        influencer = db.query(Influencer).filter(Influencer.id == influencer_id).first()
        if not influencer:
            raise NotFoundError("Influencer not found.")
        return influencer

    @staticmethod
    def update_bank_details(db: Session, influencer_id: str, details: BankDetailsIn) -> Influencer:
        influencer = InfluencerService.get_bank_details(db, influencer_id)
        # Changed details always need re-verification
        influencer.bank_details = {**details.model_dump(), "is_verified": False}
        influencer.has_bank_details = True
        db.commit()
        db.refresh(influencer)
        return influencer

    @staticmethod
    def verify_bank_details(db: Session, influencer_id: str, is_verified: bool) -> Influencer:
        ensure_valid_id(influencer_id, "influencer ID")
        influencer = InfluencerService.get_bank_details(db, influencer_id)
        if not influencer.bank_details:
            raise ValidationError("Influencer has no bank details to verify.")
        influencer.bank_details = {**influencer.bank_details, "is_verified": is_verified}
        db.commit()
        db.refresh(influencer)
        return influencer

