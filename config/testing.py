import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "boarding_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

SESSION_DAYS = 1
TEACHER_STORE_PATH = os.getenv("TEACHER_STORE_PATH", "instance/teachers_test.json")
CACHE_TTL_SECONDS = 30

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
