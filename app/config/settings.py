"""
Application settings and configuration
"""
import os
from dotenv import load_dotenv

from app.config.database import Collections

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"true", "1", "yes"}


def _env_list(name: str, default: str) -> list:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


class Settings:
    # Application
    APP_NAME = "Booking Intake"
    VERSION = "1.0.0"

    def __init__(self, **overrides):
        self.DEBUG = _env_bool("DEBUG", "False")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.HOST = os.getenv("HOST", "0.0.0.0")
        self.PORT = int(os.getenv("PORT", "3000"))

        # CORS
        self.ALLOWED_ORIGINS = _env_list("ALLOWED_ORIGINS", "*")

        # Storage: "json" (flat file) or "mongo"
        self.STORE_BACKEND = os.getenv("STORE_BACKEND", "json").strip().lower()
        self.BOOKINGS_FILE = os.getenv("BOOKINGS_FILE", os.path.join(os.getcwd(), "bookings.json"))
        self.MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
        self.DATABASE_NAME = os.getenv("DATABASE_NAME", "bookings_db")
        self.BOOKINGS_COLLECTION = os.getenv("BOOKINGS_COLLECTION", Collections.BOOKINGS)

        # Security
        self.ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")

        # Mail
        self.SMTP_HOST = os.getenv("SMTP_HOST", "")
        self.SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
        self.SMTP_USER = os.getenv("SMTP_USER", "")
        self.SMTP_PASS = os.getenv("SMTP_PASS", "")
        self.SMTP_SECURE = _env_bool("SMTP_SECURE", "False")
        self.SMTP_TIMEOUT = float(os.getenv("SMTP_TIMEOUT", "15"))
        self.ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")
        self.MAIL_FROM = os.getenv("MAIL_FROM") or self.SMTP_USER or "no-reply@localhost"
        self.ADMIN_SUBJECT = os.getenv("ADMIN_SUBJECT", "New Booking Request")
        self.CLIENT_SUBJECT = os.getenv("CLIENT_SUBJECT", "We received your booking request")

        # File Uploads
        self.UPLOAD_FIELD_NAME = os.getenv("UPLOAD_FIELD_NAME", "file")
        self.MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
        self.ALLOWED_UPLOAD_TYPES = _env_list("ALLOWED_UPLOAD_TYPES", "application/pdf")

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)


settings = Settings()
