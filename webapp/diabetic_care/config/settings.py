import os
import sys
from datetime import timedelta


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-prod'

    # Determine project root and paths in both source and frozen (PyInstaller) modes.
    if getattr(sys, 'frozen', False):
        PROJECT_ROOT = os.path.dirname(sys.executable)
        BASE_DIR = PROJECT_ROOT
    else:
        # Regular source layout: diabetic_care/config -> diabetic_care -> webapp
        BASE_DIR = os.path.abspath(os.path.dirname(__file__))
        PROJECT_ROOT = os.path.dirname(os.path.dirname(BASE_DIR))

    # Database file location
    DATABASE_PATH = os.environ.get('DATABASE_PATH') or os.path.join(PROJECT_ROOT, 'diabetic_care.db')

    # Only used to seed the admin account on first start; `flask set-admin-password` changes it later.
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'diabetic2025'

    # Base URL encoded in patient QR codes
    PUBLIC_BASE_URL = os.environ.get('PUBLIC_BASE_URL') or 'http://localhost:8080'

    # Uploaded national card / birth certificate photos
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(PROJECT_ROOT, 'uploads')
    UPLOAD_MAX_WIDTH = 1600
    UPLOAD_JPEG_QUALITY = 82
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    CITIES_API_URL = 'https://api.divar.ir/v8/places/cities'
    CITIES_CACHE_SECONDS = 24 * 60 * 60
    CITIES_TIMEOUT = 10

    PATIENTS_PER_PAGE = 20

    # Admin session cookie
    PERMANENT_SESSION_LIFETIME = timedelta(hours=24)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False

    DEBUG = True
    TESTING = False


class TestConfig(Config):
    TESTING = True
    DEBUG = False
    ADMIN_PASSWORD = 'test-password'
    PUBLIC_BASE_URL = 'http://testserver'
