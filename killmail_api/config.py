"""
Configuration Module

This module contains configuration settings for the application.
"""
import os
from pathlib import Path

# Load environment variables from .env file
from dotenv import load_dotenv

# Base directory - one level up from this file
BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")

# Server settings
BIND_HOST = os.getenv("BIND_HOST", "0.0.0.0")
BIND_PORT = int(os.getenv("BIND_PORT", "8912"))

# MongoDB settings
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DATABASE = os.getenv("MONGO_DATABASE", "truth")
MONGO_COLLECTION = os.getenv("MONGO_COLLECTION", "killmails")

# Budget for every store round trip (connect, lookup, query)
QUERY_TIMEOUT_SECONDS = float(os.getenv("QUERY_TIMEOUT_SECONDS", "10"))

# Bulk listing settings
PAGE_SIZE = 100  # Fixed, clients page with ?page=N

# When enabled, only the last of character/corporation/alliance filters applies
LEGACY_FILTER_COMBINATION = os.getenv(
    "LEGACY_FILTER_COMBINATION", "false"
).lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
