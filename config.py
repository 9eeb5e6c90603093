import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL")

if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is not set")

AUTH_SECRET = os.getenv("AUTH_SECRET")

if not AUTH_SECRET:
    raise ValueError("AUTH_SECRET environment variable is not set")

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

SQL_ECHO = _flag("SQL_ECHO")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
