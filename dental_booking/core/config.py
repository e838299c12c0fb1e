import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: str) -> list[str]:
    raw = value if value is not None else default
    return [item.strip() for item in raw.split(",") if item.strip()]


APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dental_booking.db")

CORS_ALLOW_ORIGINS = _get_list(os.getenv("CORS_ALLOW_ORIGINS"), "http://localhost:5173")


SAML_STRICT = _get_bool(os.getenv("SAML_STRICT"), default=True)
SAML_DEBUG = _get_bool(os.getenv("SAML_DEBUG"), default=False)

SAML_SP_BASE_URL = os.getenv("SAML_SP_BASE_URL", "https://localhost:8000")
SAML_SP_ENTITY_ID = os.getenv("SAML_SP_ENTITY_ID", f"{SAML_SP_BASE_URL}/auth/sso/metadata")
SAML_SP_ACS_URL = os.getenv("SAML_SP_ACS_URL", f"{SAML_SP_BASE_URL}/auth/sso/acs")
SAML_SP_SLO_URL = os.getenv("SAML_SP_SLO_URL", f"{SAML_SP_BASE_URL}/auth/sso/logout")
SAML_SP_X509CERT = os.getenv("SAML_SP_X509CERT", "")
SAML_SP_PRIVATE_KEY = os.getenv("SAML_SP_PRIVATE_KEY", "")
SAML_SP_NAMEID_FORMAT = os.getenv(
    "SAML_SP_NAMEID_FORMAT",
    "urn:oasis:names:tc:SAML:1.1:nameid-format:emailAddress",
)

SAML_IDP_ENTITY_ID = os.getenv("SAML_IDP_ENTITY_ID", "")
SAML_IDP_SSO_URL = os.getenv("SAML_IDP_SSO_URL", "")
SAML_IDP_SLO_URL = os.getenv("SAML_IDP_SLO_URL", "")
SAML_IDP_X509CERT = os.getenv("SAML_IDP_X509CERT", "")
SAML_IDP_METADATA_PATH = os.getenv("SAML_IDP_METADATA_PATH", "")
SAML_PROVIDER_NAME = os.getenv("SAML_PROVIDER_NAME", "saml")

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

FRONTEND_SSO_REDIRECT_URL = os.getenv("FRONTEND_SSO_REDIRECT_URL", "")

# Booking
BOOKING_TIME_SLOTS = _get_list(os.getenv("BOOKING_TIME_SLOTS"), "09:00,10:30,14:00,15:30,16:30")
TIME_SLOT_PROVIDER = os.getenv("TIME_SLOT_PROVIDER", "fixed").strip().lower()
AVAILABILITY_SLOT_MINUTES = int(os.getenv("AVAILABILITY_SLOT_MINUTES", "30"))
ALLOW_PAST_APPOINTMENT_DATES = _get_bool(os.getenv("ALLOW_PAST_APPOINTMENT_DATES"), default=False)
PREVENT_DOUBLE_BOOKING = _get_bool(os.getenv("PREVENT_DOUBLE_BOOKING"), default=False)
MAX_APPOINTMENT_NOTES_LENGTH = int(os.getenv("MAX_APPOINTMENT_NOTES_LENGTH", "600"))


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if TIME_SLOT_PROVIDER not in {"fixed", "availability"}:
        raise RuntimeError("TIME_SLOT_PROVIDER must be 'fixed' or 'availability'.")
