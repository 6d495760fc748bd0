import os

SECRET_KEY = "test-secret"

STORE_BACKEND = "memory"

SUPABASE_URL = ""
SUPABASE_KEY = ""

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "campus_events_test"),
}

DEBUG = False
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False
AUTO_SEED_DB = False

# Deterministic checkout in tests.
PAYMENT_FAILURE_RATE = 0.0
REQUIRE_REGISTRATION_FOR_ATTENDANCE = False
