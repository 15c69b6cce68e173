import os
from pathlib import Path

from dotenv import load_dotenv

# Load env from schedule_backend/.env when present
load_dotenv(dotenv_path=(Path(__file__).parent / ".env"))

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./schedules.db")

# CORS settings
CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Scheduling defaults
DEFAULT_HOURS_PER_DAY = float(os.getenv("DEFAULT_HOURS_PER_DAY", "8"))
DEFAULT_INCLUDE_WEEKENDS = os.getenv("DEFAULT_INCLUDE_WEEKENDS", "false").lower() in ("1", "true", "yes")

# Risk heuristics
HIGH_COMPLEXITY_HOURS = float(os.getenv("HIGH_COMPLEXITY_HOURS", "40"))
MANY_DEPENDENCIES_THRESHOLD = int(os.getenv("MANY_DEPENDENCIES_THRESHOLD", "3"))

# Deadline suggestions never propose more than this many hours per day
MAX_SUGGESTED_HOURS_PER_DAY = int(os.getenv("MAX_SUGGESTED_HOURS_PER_DAY", "12"))

# Uvicorn server settings
UVICORN_HOST = os.getenv("UVICORN_HOST", "0.0.0.0")
UVICORN_PORT = int(os.getenv("UVICORN_PORT", "8000"))
