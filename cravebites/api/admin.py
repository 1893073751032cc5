"""FastAPI routes for admin accounts and password reset"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
import logging

from cravebites.config import settings
from cravebites.db.database import get_db
from cravebites.dependencies import get_current_admin, get_mail_client
from cravebites.errors import MailError
from cravebites.models.admin import Admin
from cravebites.models.schemas import (
    AdminEnvelope,
    AdminResponse,
    AdminSetup,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileUpdate,
    ResetPasswordRequest,
    VerifyOtpRequest
)
from cravebites.services.admin_service import AdminService
from cravebites.services.auth import create_access_token
from cravebites.services.mail_client import MailClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/setup", response_model=AdminEnvelope, status_code=status.HTTP_201_CREATED)
def setup(payload: AdminSetup, db: Session = Depends(get_db)):
    """Create the first admin (only works while no admin exists)"""
    admin = AdminService.setup_first_admin(db, payload.name, payload.email, payload.password)
    return AdminEnvelope(message="Admin account created successfully", admin=admin)


@router.post("/add", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def add_admin(
    payload: AdminSetup,
    db: Session = Depends(get_db),
    current: Admin = Depends(get_current_admin)
):
    """Add another admin"""
    AdminService.create_admin(db, payload.name, payload.email, payload.password)
    logger.info(f"Admin {current.email} added admin {payload.email}")
    return MessageResponse(message="Admin added successfully")


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Login admin and return JWT token"""
    admin = AdminService.authenticate(db, credentials.email, credentials.password)

    access_token = create_access_token(
        data={"sub": admin.email, "admin_id": admin.id, "role": admin.role.value}
    )
    return LoginResponse(access_token=access_token, admin=admin)


@router.get("/profile", response_model=AdminEnvelope)
def get_profile(current: Admin = Depends(get_current_admin)):
    return AdminEnvelope(admin=current)


@router.put("/profile", response_model=AdminEnvelope)
def update_profile(
    update: ProfileUpdate,
    db: Session = Depends(get_db),
    current: Admin = Depends(get_current_admin)
):
    admin = AdminService.update_profile(db, current, update)
    return AdminEnvelope(message="Profile updated successfully", admin=admin)


@router.get("", response_model=List[AdminResponse])
def list_admins(db: Session = Depends(get_db), current: Admin = Depends(get_current_admin)):
    """List all admins"""
    return AdminService.get_admins(db)


@router.delete("/{admin_id}", response_model=MessageResponse)
def delete_admin(admin_id: int, db: Session = Depends(get_db), current: Admin = Depends(get_current_admin)):
    """Delete an admin (superadmins cannot be deleted)"""
    AdminService.delete_admin(db, admin_id)
    return MessageResponse(message="Admin removed successfully")


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    payload: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    mail: MailClient = Depends(get_mail_client)
):
    """Email a one-time password for resetting the admin password"""
    admin, otp = AdminService.issue_otp(db, payload.email, settings.otp_expire_minutes)
    try:
        mail.send_otp_email(admin.email, otp, settings.otp_expire_minutes)
    except MailError as e:
        raise MailError("Failed to send OTP email") from e
    return MessageResponse(message="OTP sent to your email")


@router.post("/verify-otp", response_model=MessageResponse)
def verify_otp(payload: VerifyOtpRequest, db: Session = Depends(get_db)):
    AdminService.check_otp(db, payload.email, payload.otp)
    return MessageResponse(message="OTP verified successfully")


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    mail: MailClient = Depends(get_mail_client)
):
    """Set a new password using a valid OTP"""
    admin = AdminService.reset_password(db, payload.email, payload.otp, payload.new_password)

    # The reset is committed; a failed confirmation email does not undo it
    try:
        mail.send_password_reset_confirmation(admin.email)
    except MailError as e:
        logger.warning(f"Password reset confirmation not sent to {admin.email}: {e}")

    return MessageResponse(message="Password reset successfully")
