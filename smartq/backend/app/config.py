# smartq/backend/app/config.py
import logging
import os
import sys

from dotenv import load_dotenv

# Load settings from .env at project root
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./smartq.db")

# "memory" keeps the queue in process (lost on restart), "sql" uses DATABASE_URL
QUEUE_BACKEND = os.getenv("QUEUE_BACKEND", "memory").strip().lower()

DEFAULT_SECRET_KEY = "smartq-dev-secret-change-me"
SECRET_KEY = os.getenv("SECRET_KEY", DEFAULT_SECRET_KEY)
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "480"))

ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
BARBER_USERNAME = os.getenv("BARBER_USERNAME", "barber")
BARBER_PASSWORD = os.getenv("BARBER_PASSWORD", "barber123")

# Indian mobile numbers, optionally prefixed with the country code
PHONE_PATTERN = os.getenv("PHONE_PATTERN", r"^(?:\+?91)?[6-9]\d{9}$")
# Stripped from numbers joined with it, so every phone is stored in national form
PHONE_COUNTRY_CODE = os.getenv("PHONE_COUNTRY_CODE", "91")
NATIONAL_NUMBER_LENGTH = 10
NAME_MAX_LENGTH = 100
AVG_SERVICE_MINUTES = int(os.getenv("AVG_SERVICE_MINUTES", "5"))

WHATSAPP_GATEWAY_URL = os.getenv("WHATSAPP_GATEWAY_URL", "").strip() or None
WHATSAPP_SESSION = os.getenv("WHATSAPP_SESSION", "default")
WHATSAPP_API_KEY = os.getenv("WHATSAPP_API_KEY", "").strip() or None
WHATSAPP_COUNTRY_CODE = os.getenv("WHATSAPP_COUNTRY_CODE", PHONE_COUNTRY_CODE)
WHATSAPP_SEND_TIMEOUT = float(os.getenv("WHATSAPP_SEND_TIMEOUT", "10"))
WHATSAPP_POLL_INTERVAL = float(os.getenv("WHATSAPP_POLL_INTERVAL", "5"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging() -> None:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
