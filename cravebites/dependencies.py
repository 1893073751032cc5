# cravebites/dependencies.py

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from typing import Optional

from cravebites.db.database import get_db
from cravebites.errors import AuthenticationError, UpstreamFailure
from cravebites.models.admin import Admin
from cravebites.services.admin_service import AdminService
from cravebites.services.auth import decode_access_token
from cravebites.services.mail_client import MailClient
from cravebites.services.media_client import MediaUploadClient

# Extracts the bearer token from the Authorization header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/admin/login", auto_error=False)

# Collaborators, created in the application lifespan
media_client: Optional[MediaUploadClient] = None
mail_client: Optional[MailClient] = None


def get_media_client() -> MediaUploadClient:
    if media_client is None:
        raise UpstreamFailure("Image upload service is not initialized")
    return media_client


def get_mail_client() -> MailClient:
    if mail_client is None:
        raise UpstreamFailure("Email service is not initialized")
    return mail_client


def get_current_admin(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> Admin:
    """Resolve the admin behind a bearer token"""
    if not token:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(token)
    admin = AdminService.get_admin_by_email(db, payload["sub"])
    if admin is None or admin.id != payload["admin_id"]:
        raise AuthenticationError("Could not validate credentials")
    return admin
