"""CraveBites API configuration"""
from typing import Optional

from cravebites.common_config import CommonSettings


class Settings(CommonSettings):
    """API specific settings"""
    service_name: str = "cravebites-api"
    otel_service_name: Optional[str] = "cravebites-api"
    port: int = 5000

    # CORS
    cors_origins: list[str] = ["*"]

    # Cloudinary (media upload)
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "cravebites"
    cloudinary_timeout: float = 30.0
    default_category_image: str = (
        "https://res.cloudinary.com/dhlfg6dpw/image/upload/v1709720000/cravebites/default-category.png"
    )
    max_upload_bytes: int = 5 * 1024 * 1024

    # SMTP (OTP and password reset emails)
    email_host: str = "smtp.gmail.com"
    email_port: int = 465
    email_secure: bool = True
    email_user: str = ""
    email_pass: str = ""
    email_timeout: float = 20.0
    email_sender_name: str = "CraveBites Admin"

    # Admin authentication
    jwt_secret_key: str = "cravebites-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    otp_expire_minutes: int = 10

    # Created on startup when the admin table is empty
    initial_admin_email: Optional[str] = None
    initial_admin_password: Optional[str] = None
    initial_admin_name: str = "Admin User"


settings = Settings()
