import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hemsy.db")

# Firebase Configuration (ID token verification)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Frontend base URL for confirmation links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CONFIRMATION_URL = os.getenv("CONFIRMATION_URL", f"{FRONTEND_URL}/confirm")
DECLINE_URL = os.getenv("DECLINE_URL", f"{FRONTEND_URL}/decline")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Hemsy <notifications@hemsy.app>")

# Global kill switch for outbound email
EMAIL_ENABLED = os.getenv("EMAIL_ENABLED", "true").lower() == "true"
# Preview mode logs emails locally instead of calling Resend
EMAIL_PREVIEW_MODE = os.getenv("EMAIL_PREVIEW_MODE", "false").lower() == "true"

# Don't send time-sensitive appointment emails within this many hours of the appointment
EMAIL_HOUR_CUTOFF = float(os.getenv("EMAIL_HOUR_CUTOFF", "1"))
# Identical reschedule emails inside this window are treated as duplicates
RESCHEDULE_DEDUPE_MINUTES = int(os.getenv("RESCHEDULE_DEDUPE_MINUTES", "5"))
CONFIRMATION_TOKEN_TTL_HOURS = int(os.getenv("CONFIRMATION_TOKEN_TTL_HOURS", "24"))

DEFAULT_SHOP_TIMEZONE = os.getenv("DEFAULT_SHOP_TIMEZONE", "UTC")
