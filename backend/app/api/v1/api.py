from fastapi import APIRouter

from app.api.v1.endpoints import admins, auth, brands, campaigns, deliverables, influencers, payment, reviews

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(brands.router, prefix="/brands", tags=["brands"])
api_router.include_router(influencers.router, prefix="/influencers", tags=["influencers"])
api_router.include_router(admins.router, prefix="/admins", tags=["admins"])
api_router.include_router(campaigns.router, prefix="/campaigns", tags=["campaigns"])
api_router.include_router(deliverables.router, prefix="/deliverables", tags=["deliverables"])
api_router.include_router(reviews.router, prefix="/reviews", tags=["reviews"])
api_router.include_router(payment.router, prefix="/payment", tags=["payment"])
