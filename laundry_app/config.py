import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./laundry.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Firebase Configuration (FCM push)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
# Path to the service-account JSON; without it push is disabled
FIREBASE_CREDENTIALS_PATH = os.getenv("FIREBASE_CREDENTIALS_PATH")
# Provider non-response is treated as a failed send, never a hang
PUSH_TIMEOUT_SECONDS = float(os.getenv("PUSH_TIMEOUT_SECONDS", "10"))
PUSH_ANDROID_ICON = os.getenv("PUSH_ANDROID_ICON", "ic_stat_laundry")

# PayMongo Configuration (GCash payment intents)
PAYMONGO_SECRET_KEY = os.getenv("PAYMONGO_SECRET_KEY")
PAYMONGO_PUBLIC_KEY = os.getenv("PAYMONGO_PUBLIC_KEY")
PAYMONGO_API_URL = os.getenv("PAYMONGO_API_URL", "https://api.paymongo.com/v1")
PAYMONGO_SUCCESS_URL = os.getenv("PAYMONGO_SUCCESS_URL", "https://example.com/success")
PAYMONGO_CANCEL_URL = os.getenv("PAYMONGO_CANCEL_URL", "https://example.com/cancel")
PAYMENT_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "15"))

# CORS - mobile clients connect from arbitrary origins
ALLOWED_ORIGINS = [
    origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",") if origin.strip()
]
