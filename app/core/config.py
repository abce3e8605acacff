import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./marketplace.db")
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# ✅ Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ✅ Frontend / Backend
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000").rstrip("/")
BACKEND_URL = os.getenv("BACKEND_URL", "http://localhost:8000").rstrip("/")

# ✅ Plans
FREE_PLAN_ID = os.getenv("FREE_PLAN_ID", "silver")
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "INR")

# ✅ Membership cards
CARD_NUMBER_PREFIX = int(os.getenv("CARD_NUMBER_PREFIX", "45"))
CARD_NUMBER_MAX_ATTEMPTS = int(os.getenv("CARD_NUMBER_MAX_ATTEMPTS", "200"))
CARD_NUMBER_ROTATE_EVERY = int(os.getenv("CARD_NUMBER_ROTATE_EVERY", "10"))

# ✅ Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")

# ✅ PayU
PAYU_MERCHANT_KEY = (os.getenv("PAYU_MERCHANT_KEY") or "").strip()
PAYU_SALT = (os.getenv("PAYU_SALT") or "").strip()
PAYU_BASE_URL = os.getenv("PAYU_BASE_URL", "https://test.payu.in").rstrip("/")
PAYU_VERIFY_URL = os.getenv("PAYU_VERIFY_URL", "https://test.payu.in/merchant/postservice.php?form=2")

# ✅ SendGrid
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
MAIL_FROM = os.getenv("MAIL_FROM")
