from dotenv import load_dotenv
import os

# Load environment variables from .env
load_dotenv()

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
IS_PRODUCTION = ENVIRONMENT == "production"

FEST_NAME = os.getenv("FEST_NAME", "Xenia")

# ------------------ Database ------------------
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", 5432)
DB_NAME = os.getenv("DB_NAME")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg2://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}",
)

# ------------------ Logging ------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO" if IS_PRODUCTION else "DEBUG")

# ------------------ Email ------------------
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
MAIL_FROM = os.getenv("MAIL_FROM", SMTP_USERNAME)
EMAIL_ENABLED = os.getenv("EMAIL_ENABLED", "true").lower() == "true"

order_created_subject = "Order Received - {order_id} | " + FEST_NAME
order_verified_subject = "Payment Verified - You're Registered! | " + FEST_NAME
order_rejected_subject = "Payment Verification Failed - {order_id} | " + FEST_NAME

# ------------------ Identity provider ------------------
IDENTITY_WEBHOOK_SECRET = os.getenv("IDENTITY_WEBHOOK_SECRET", "")

# ------------------ CORS ------------------
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
