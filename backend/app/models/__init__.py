from app.db.session import Base
from .admin import Admin
from .brand import Brand
from .influencer import Influencer
from .campaign import (
    Campaign, AssignedInfluencer, SubmittedJob, StashedDeliverable, ReviewComment,
    AcceptanceStatus, CompletionStatus, ApprovalStatus, AuthorType
)
