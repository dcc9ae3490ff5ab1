import os
from decimal import Decimal

from dotenv import load_dotenv

# Carrega o .env da raiz do projeto
load_dotenv()

APP_NAME = os.getenv("APP_NAME", "BillMaster Pro")
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./billmaster.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_TEST = ENV_NORMALIZED == "test"
IS_PROD = ENV_NORMALIZED in {"prod", "production"}

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

# Auth (JWT)
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "" if IS_PROD else "dev-insecure-secret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(60 * 24)))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Billing
INVOICE_TAX_RATE = Decimal(os.getenv("INVOICE_TAX_RATE", "0.08"))

# Email (SendGrid v3)
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY", "").strip()
SENDGRID_API_URL = os.getenv("SENDGRID_API_URL", "https://api.sendgrid.com/v3/mail/send")
FROM_EMAIL = os.getenv("FROM_EMAIL", "noreply@example.com")

# Bootstrap do Super Admin
BOOTSTRAP_ADMIN_EMAIL = os.getenv("BOOTSTRAP_ADMIN_EMAIL", "").strip()
BOOTSTRAP_ADMIN_PASSWORD = os.getenv("BOOTSTRAP_ADMIN_PASSWORD", "").strip()
BOOTSTRAP_ADMIN_NAME = os.getenv("BOOTSTRAP_ADMIN_NAME", "Platform Admin").strip() or "Platform Admin"
BOOTSTRAP_COMPANY_NAME = os.getenv("BOOTSTRAP_COMPANY_NAME", APP_NAME).strip() or APP_NAME
BOOTSTRAP_ALLOW = os.getenv("BOOTSTRAP_ALLOW", "").strip().lower() in {
    "1",
    "true",
    "yes",
    "on",
}
