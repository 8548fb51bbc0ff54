# resenix/core/config.py
import os
from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str) -> list:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    APP_NAME: str = os.getenv("APP_NAME", "ResenixPro API")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    FIREBASE_PROJECT_ID: str = os.getenv("FIREBASE_PROJECT_ID", "resenixpro")
    FIREBASE_STORAGE_BUCKET: str = os.getenv("FIREBASE_STORAGE_BUCKET", "resenixpro.firebasestorage.app")
    FIREBASE_SERVICE_ACCOUNT_PATH: str = os.getenv(
        "FIREBASE_SERVICE_ACCOUNT_PATH",
        "firebase-service-account.json",
    )

    # Object storage folder for generated report files
    REPORTS_PREFIX: str = os.getenv("REPORTS_PREFIX", "public/reports")

    # Equipment whose remaining budget drops to this value is flagged as due soon
    EQUIPMENT_ALERT_THRESHOLD: float = float(os.getenv("EQUIPMENT_ALERT_THRESHOLD", "24"))

    # Usage log: maximum hours accepted for a single day
    MAX_DAILY_HOURS: float = float(os.getenv("MAX_DAILY_HOURS", "24"))

    CORS_ORIGINS: list = _split_csv(os.getenv("CORS_ORIGINS", "*"))


settings = Settings()
