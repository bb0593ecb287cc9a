import os
from dotenv import load_dotenv

# Load a local .env from the repository root (useful outside Docker)
env_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), '..', '.env')
load_dotenv(env_path)

SECRET_KEY = os.getenv("SECRET_KEY", "marocdeals-dev-secret-change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./marocdeals.db")

MAIL_USERNAME = os.getenv("MAIL_USERNAME")
_raw_password = os.getenv("MAIL_PASSWORD")
MAIL_PASSWORD = None
if _raw_password is not None:
    # Gmail app passwords are shown with spaces but must be sent without them
    cleaned = _raw_password.strip().strip('"').strip()
    MAIL_PASSWORD = cleaned.replace(' ', '') if 'gmail' in os.getenv('MAIL_SERVER', '').lower() else cleaned
MAIL_FROM = os.getenv("MAIL_FROM", MAIL_USERNAME)
MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
MAIL_SERVER = os.getenv("MAIL_SERVER", "smtp.gmail.com")

VERIFICATION_CODE_TTL_MINUTES = int(os.getenv("VERIFICATION_CODE_TTL_MINUTES", "10"))
VERIFICATION_MAX_ATTEMPTS = int(os.getenv("VERIFICATION_MAX_ATTEMPTS", "3"))
VERIFICATION_SWEEP_INTERVAL_SECONDS = int(os.getenv("VERIFICATION_SWEEP_INTERVAL_SECONDS", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", "8080"))
