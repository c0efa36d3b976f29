"""
Plain-text bodies for notification email and WhatsApp messages.

Email builders return (subject, body); WhatsApp builders return the body.
"""

from typing import Optional, Tuple

from app.core.config import settings

SIGNATURE = "\n\n--\nThe CaringSparks Team"


def _short_id(record_id: str) -> str:
    return str(record_id)[-8:].upper()


def _dashboard(path: str = "") -> str:
    return f"{settings.FRONTEND_URL}{path}"


# Accounts

def account_credentials_email(name: str, email: str, password: str, kind: str) -> Tuple[str, str]:
    subject = f"Welcome to CaringSparks, {name}!"
    body = (
        f"Hi {name},\n\n"
        f"Your {kind} account has been created.\n\n"
        f"Email: {email}\n"
        f"Temporary password: {password}\n\n"
        f"Log in at {_dashboard('/login')} and change your password from your profile."
        f"{SIGNATURE}"
    )
    return subject, body


def admin_new_brand_email(brand_name: str, email: str, total_cost: float) -> Tuple[str, str]:
    subject = f"New Brand Registration: {brand_name} - CaringSparks"
    body = f"A new brand registered.\n\nBrand: {brand_name}\nEmail: {email}\nTotal cost: {total_cost:,.2f}{SIGNATURE}"
    return subject, body


def admin_new_influencer_email(name: str, email: str, location: str, niches) -> Tuple[str, str]:
    subject = "New Influencer Application - CaringSparks"
    body = (
        f"A new influencer applied and is awaiting review.\n\n"
        f"Name: {name}\nEmail: {email}\nLocation: {location}\nNiches: {', '.join(niches or [])}"
        f"{SIGNATURE}"
    )
    return subject, body


def influencer_status_email(name: str, status: str) -> Tuple[str, str]:
    if status == "approved":
        subject = "Your CaringSparks application has been approved"
        body = (
            f"Congratulations {name},\n\nYour influencer application has been approved. "
            f"You can now log in at {_dashboard('/login')} and start receiving campaigns."
        )
    else:
        subject = "Update on your CaringSparks application"
        body = (
            f"Hi {name},\n\nThank you for applying. After review we are unable to approve "
            f"your application at this time."
        )
    return subject, body + SIGNATURE


def password_reset_email(token: str, role: str) -> Tuple[str, str]:
    link = _dashboard(f"/reset-password?token={token}&role={role}")
    subject = "Password Reset Request - CaringSparks"
    body = (
        "We received a request to reset your password.\n\n"
        f"Reset it here: {link}\n\n"
        f"The link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes. "
        "If you did not ask for this, ignore this email."
        f"{SIGNATURE}"
    )
    return subject, body


def password_reset_confirmation_email() -> Tuple[str, str]:
    subject = "Password Successfully Reset - CaringSparks"
    body = "Your password was changed. If this was not you, contact support immediately." + SIGNATURE
    return subject, body


# Campaigns

def campaign_created_email(brand_name: str, campaign_id: str, total_cost: float) -> Tuple[str, str]:
    subject = f"Campaign received: {brand_name}"
    body = (
        f"Hi {brand_name},\n\nWe received your campaign #{_short_id(campaign_id)}. "
        f"Total cost: {total_cost:,.2f}. We will review it and assign influencers shortly."
        f"{SIGNATURE}"
    )
    return subject, body


def campaign_status_email(brand_name: str, status: str, total_cost: float) -> Tuple[str, str]:
    subject = f"Your campaign has been {status}"
    body = f"Hi {brand_name},\n\nYour campaign is now {status}. Total cost: {total_cost:,.2f}.{SIGNATURE}"
    return subject, body


def campaign_updated_email(brand_name: str, campaign_id: str, fields) -> Tuple[str, str]:
    subject = f"Campaign #{_short_id(campaign_id)} updated"
    body = (
        f"Hi {brand_name},\n\nThe following campaign details changed: {', '.join(fields)}.\n"
        "The campaign is back in review."
        f"{SIGNATURE}"
    )
    return subject, body


def payment_confirmation_email(brand_name: str, campaign_id: str, total_cost: float) -> Tuple[str, str]:
    subject = f"Payment confirmed for campaign #{_short_id(campaign_id)}"
    body = f"Hi {brand_name},\n\nWe received your payment of {total_cost:,.2f}. Thank you!{SIGNATURE}"
    return subject, body


def influencers_assigned_email(brand_name: str, influencer_names) -> Tuple[str, str]:
    subject = f"Influencers assigned to your campaign ({len(influencer_names)})"
    listing = "\n".join(f"- {name}" for name in influencer_names)
    body = f"Hi {brand_name},\n\nThe following influencers were assigned to your campaign:\n{listing}{SIGNATURE}"
    return subject, body


def influencer_assignment_email(influencer_name: str, brand_name: str) -> Tuple[str, str]:
    subject = f"New campaign assignment: {brand_name}"
    body = (
        f"Hi {influencer_name},\n\nYou have been assigned to a campaign for {brand_name}. "
        f"Log in at {_dashboard('/influencer')} to review and accept it."
        f"{SIGNATURE}"
    )
    return subject, body


def deliverables_submitted_email(
    recipient: str, influencer_name: str, brand_name: str, submitted: int, required: int
) -> Tuple[str, str]:
    subject = f"Deliverables submitted for {brand_name}"
    body = (
        f"Hi {recipient},\n\n{influencer_name} submitted deliverables for {brand_name}.\n"
        f"Progress: {submitted}/{required} posts."
        f"{SIGNATURE}"
    )
    return subject, body


def assignment_whatsapp(influencer_name: str, brand_name: str) -> str:
    return (
        f"*New Campaign Assignment!*\n\nHi {influencer_name}!\n\n"
        f"You've been assigned to a new campaign: *{brand_name}*\n\n"
        f"Log in to review and accept it: {_dashboard()}"
    )


def unassignment_whatsapp(influencer_name: str, brand_name: str, campaign_id: str) -> str:
    return (
        f"*Campaign Assignment Update*\n\nHello {influencer_name},\n\n"
        f"Your assignment to {brand_name} (#{_short_id(campaign_id)}) has been removed. "
        f"This does not affect your profile or future opportunities.\n\n{_dashboard('/influencer')}"
    )


def response_whatsapp(
    brand_name: str, influencer_name: str, status: str, message: Optional[str] = None
) -> str:
    text = f"*Campaign Response*\n\nHi {brand_name},\n\n{influencer_name} has *{status}* your campaign assignment."
    if message:
        text += f"\n\nMessage: {message}"
    if status == "accepted":
        text += "\n\nYou can now proceed with this influencer."
    else:
        text += "\n\nYou may want to assign another influencer to this campaign."
    return text


def deliverables_whatsapp(brand_name: str, influencer_name: str, submitted: int, required: int) -> str:
    return (
        f"*Deliverables Submitted!*\n\nHi {brand_name},\n\n"
        f"{influencer_name} submitted deliverables for your campaign.\n"
        f"Submitted: {submitted}/{required} posts\n\nReview them in your dashboard: {_dashboard()}"
    )
