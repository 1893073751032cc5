"""Admin account business logic"""
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import Session
from typing import List, Optional, Tuple
from passlib.context import CryptContext
from opentelemetry import trace
import logging
import secrets

from cravebites.db.database import is_valid_id, utcnow
from cravebites.errors import AuthenticationError, DuplicateKey, InvalidState, NotFound, ValidationError
from cravebites.models.admin import Admin, AdminRole
from cravebites.models.schemas import ProfileUpdate

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

OTP_DIGITS = 6


def generate_otp() -> str:
    """Six digit one-time password (never starts with 0)"""
    return str(secrets.randbelow(9 * 10 ** (OTP_DIGITS - 1)) + 10 ** (OTP_DIGITS - 1))


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class AdminService:
    """Admin service for business logic"""

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password"""
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password"""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def get_admin(db: Session, admin_id: int) -> Admin:
        if not is_valid_id(admin_id):
            raise NotFound("Admin", admin_id)
        admin = db.query(Admin).filter(Admin.id == admin_id).first()
        if not admin:
            raise NotFound("Admin", admin_id)
        return admin

    @staticmethod
    def get_admin_by_email(db: Session, email: str) -> Optional[Admin]:
        return db.query(Admin).filter(Admin.email == email.strip().lower()).first()

    @staticmethod
    def get_admins(db: Session) -> List[Admin]:
        return db.query(Admin).order_by(Admin.id).all()

    @staticmethod
    def create_admin(
        db: Session,
        name: str,
        email: str,
        password: str,
        role: AdminRole = AdminRole.ADMIN
    ) -> Admin:
        """Create an admin account; emails are unique (case-insensitive)"""
        with tracer.start_as_current_span("admin_service.create_admin"):
            if AdminService.get_admin_by_email(db, email):
                raise DuplicateKey("Email already exists")

            admin = Admin(
                name=name.strip(),
                email=email.strip().lower(),
                hashed_password=AdminService.hash_password(password),
                role=role
            )
            db.add(admin)
            db.commit()
            db.refresh(admin)

            logger.info(f"Created {admin.role.value} {admin.id}: {admin.email}")
            return admin

    @staticmethod
    def setup_first_admin(db: Session, name: str, email: str, password: str) -> Admin:
        """Create the first admin; refused once any admin exists"""
        if db.query(Admin.id).first():
            raise InvalidState("Admin already exists. Use login instead.")
        return AdminService.create_admin(db, name, email, password, role=AdminRole.SUPERADMIN)

    @staticmethod
    def ensure_initial_admin(db: Session, name: str, email: Optional[str], password: Optional[str]) -> Optional[Admin]:
        """Create a default admin at startup when the table is empty and credentials are configured"""
        if not email or not password or db.query(Admin.id).first():
            return None
        admin = AdminService.create_admin(db, name, email, password, role=AdminRole.SUPERADMIN)
        logger.info(f"Initial admin created: {admin.email}")
        return admin

    @staticmethod
    def authenticate(db: Session, email: str, password: str) -> Admin:
        """Authenticate admin"""
        with tracer.start_as_current_span("admin_service.authenticate"):
            admin = AdminService.get_admin_by_email(db, email)
            if not admin:
                logger.warning(f"Login attempt for unknown admin {email}")
                raise AuthenticationError()

            if not AdminService.verify_password(password, admin.hashed_password):
                logger.warning(f"Invalid password for admin {email}")
                raise AuthenticationError()

            logger.info(f"Admin {email} authenticated successfully")
            return admin

    @staticmethod
    def update_profile(db: Session, admin: Admin, update: ProfileUpdate) -> Admin:
        data = update.model_dump(exclude_unset=True)

        if data.get("email"):
            email = data["email"].strip().lower()
            existing = AdminService.get_admin_by_email(db, email)
            if existing and existing.id != admin.id:
                raise DuplicateKey("Email already exists")
            admin.email = email
        if data.get("name"):
            admin.name = data["name"]
        if data.get("password"):
            admin.hashed_password = AdminService.hash_password(data["password"])

        db.commit()
        db.refresh(admin)
        return admin

    @staticmethod
    def delete_admin(db: Session, admin_id: int) -> None:
        admin = AdminService.get_admin(db, admin_id)
        if admin.role == AdminRole.SUPERADMIN:
            raise InvalidState("Cannot delete superadmin")

        db.delete(admin)
        db.commit()
        logger.info(f"Deleted admin {admin_id}")

    @staticmethod
    def issue_otp(db: Session, email: str, expires_minutes: int = 10) -> Tuple[Admin, str]:
        """Store a fresh OTP on the admin, replacing any previous one"""
        admin = AdminService.get_admin_by_email(db, email)
        if not admin:
            raise NotFound("Admin", email)

        otp = generate_otp()
        admin.otp = otp
        admin.otp_expires_at = utcnow() + timedelta(minutes=expires_minutes)
        db.commit()

        logger.info(f"Issued password reset OTP for admin {admin.id}, expires {admin.otp_expires_at.isoformat()}")
        return admin, otp

    @staticmethod
    def check_otp(db: Session, email: str, otp: str) -> Admin:
        admin = AdminService.get_admin_by_email(db, email)
        if not admin:
            raise NotFound("Admin", email)

        expires_at = admin.otp_expires_at
        if (
            not admin.otp
            or not expires_at
            or not secrets.compare_digest(admin.otp, otp)
            or utcnow() > _as_utc(expires_at)
        ):
            raise ValidationError(["Invalid or expired OTP"])
        return admin

    @staticmethod
    def reset_password(db: Session, email: str, otp: str, new_password: str) -> Admin:
        """Set a new password with a valid OTP; the OTP is consumed"""
        admin = AdminService.check_otp(db, email, otp)
        admin.hashed_password = AdminService.hash_password(new_password)
        admin.otp = None
        admin.otp_expires_at = None
        db.commit()

        logger.info(f"Password reset for admin {admin.id}")
        return admin
