import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

# supabase | mysql | memory
STORE_BACKEND = os.getenv("STORE_BACKEND", "supabase")

SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_KEY = os.getenv("SUPABASE_KEY", os.getenv("SUPABASE_ANON_KEY", ""))

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "campus_events"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# mysql: apply database/schema.sql on startup (idempotent)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# mysql / memory: insert demo users, events and food stalls on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "1")))

PAYMENT_FAILURE_RATE = float(os.getenv("PAYMENT_FAILURE_RATE", "0.1"))
REQUIRE_REGISTRATION_FOR_ATTENDANCE = bool(int(os.getenv("REQUIRE_REGISTRATION_FOR_ATTENDANCE", "0")))
