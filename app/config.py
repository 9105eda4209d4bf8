# app/config.py

import os


class Config:
    # Flask Secret Key
    SECRET_KEY = os.getenv('SECRET_KEY', 'your_secret_key')

    # Database Configuration
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URI',
        'postgresql://postgres:postgres@db:5432/court_booking_db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,       # Validate connections before using
        "pool_recycle": 1800,        # Recycle every 30 minutes
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "connect_args": {
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000"  # 30s query timeout
        }
    }

    # Upload Configuration
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16 MB request limit
    MAX_PHOTO_BYTES = int(os.getenv('MAX_PHOTO_BYTES', 5 * 1024 * 1024))
    APPROVAL_PHOTO_FOLDER = os.getenv('APPROVAL_PHOTO_FOLDER', 'approval-photos')
    REQUIRE_APPROVAL_PHOTO = os.getenv('REQUIRE_APPROVAL_PHOTO', 'true').lower() in ("true", "1", "t")

    # Facility
    FACILITY_TIMEZONE = os.getenv('FACILITY_TIMEZONE', 'Asia/Kolkata')
    SLOT_MIN_HOUR = int(os.getenv('SLOT_MIN_HOUR', 7))
    SLOT_MAX_HOUR = int(os.getenv('SLOT_MAX_HOUR', 22))

    # Auth
    AUTH_TOKEN_TTL_SECONDS = int(os.getenv('AUTH_TOKEN_TTL_SECONDS', 24 * 60 * 60))
    ADMIN_SETUP_KEY = os.getenv('ADMIN_SETUP_KEY')

    # Redis (auth token store), read by init_redis()
    REDIS_URL = os.getenv('REDIS_URL')
    REDIS_TLS_ENABLED = os.getenv('REDIS_TLS_ENABLED', 'false').lower() == 'true'
    REDIS_HOST = os.getenv('REDIS_HOST', 'localhost')
    REDIS_PORT = int(os.getenv('REDIS_PORT', 6379))
    REDIS_DB = int(os.getenv('REDIS_DB', 0))

    # Cloudinary Configuration
    CLOUDINARY_CLOUD_NAME = os.getenv('CLOUDINARY_CLOUD_NAME')
    CLOUDINARY_API_KEY = os.getenv('CLOUDINARY_API_KEY')
    CLOUDINARY_API_SECRET = os.getenv('CLOUDINARY_API_SECRET')

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv('CORS_ORIGINS', 'http://localhost:3000,http://localhost:3001').split(',')
        if origin.strip()
    ]
