import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./forum.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "4320"))  # 3 days
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "*").split(",")
    if o.strip()
]

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "20"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() in ("1", "true", "yes")
AUTH_RATE = os.getenv("AUTH_RATE", "5/minute")
THREAD_CREATE_RATE = os.getenv("THREAD_CREATE_RATE", "3/minute;20/hour;60/day")
REPLY_CREATE_RATE = os.getenv("REPLY_CREATE_RATE", "6/minute;40/hour;150/day")
REPLY_UPDATE_RATE = os.getenv("REPLY_UPDATE_RATE", "12/minute;80/hour;300/day")
FAVORITE_RATE = os.getenv("FAVORITE_RATE", "30/minute;1000/day")
