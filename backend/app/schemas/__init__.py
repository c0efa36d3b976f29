from .common import APIResponse, CamelModel, MessageResponse, Pagination
from .auth import LoginRequest, LoginData, TokenData, ForgotPasswordRequest, ResetPasswordRequest, ChangePasswordRequest
from .brand import BrandRegister, BrandUpdate, BrandOut, BrandPage, BrandStats
from .influencer import InfluencerUpdate, InfluencerOut, InfluencerPage, InfluencerStats, BankDetailsIn
from .admin import AdminCreate, AdminUpdate, AdminOut
from .campaign import (
    CampaignCreate, CampaignUpdate, CampaignOut, CampaignPage,
    AssignInfluencersRequest, AssignmentSummary, RespondRequest,
)
from .deliverable import DeliverableIn, DeliverablesRequest, DeliverableStatus, StashList
from .review import ReviewCreate, ReviewUpdate
from .payment import VerifyPaymentRequest, PaymentVerification, PaymentStatus, CampaignPaymentDetails
