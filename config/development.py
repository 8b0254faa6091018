import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "boarding_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Số ngày giữ phiên đăng nhập khi chọn "Ghi nhớ"
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))

# Danh bạ giáo viên lưu dạng JSON
TEACHER_STORE_PATH = os.getenv("TEACHER_STORE_PATH", "instance/teachers.json")

# Thời gian giữ kết quả đọc trong bộ nhớ (giây); 0 = tắt cache
CACHE_TTL_SECONDS = float(os.getenv("CACHE_TTL_SECONDS", "10"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
