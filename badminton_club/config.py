import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration class with all settings as static attributes."""

    # Core configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-me'
    DEBUG = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'
    TESTING = False
    VERSION = '1.0.0'

    # Operator session settings
    PERMANENT_SESSION_LIFETIME = timedelta(hours=8)
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    REMEMBER_COOKIE_DURATION = timedelta(days=7)

    # Database configuration
    base_db_uri = os.environ.get('DATABASE_URL')

    # Fallback to SQLite if no DATABASE_URL is provided
    if not base_db_uri:
        base_db_uri = 'sqlite:///club_bookings.db'

    # Hosted Postgres providers still hand out the old scheme
    if base_db_uri.startswith('postgres://'):
        base_db_uri = base_db_uri.replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_DATABASE_URI = base_db_uri

    # Disable track modifications for performance
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # SQLAlchemy engine options
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_recycle": 3600,  # Recycle connections after 1 hour
        "pool_pre_ping": True,  # Check connection health before use
    }

    # Logging
    LOG_DIR = os.environ.get('LOG_DIR')
    ENABLE_FILE_LOGGING = os.environ.get('ENABLE_FILE_LOGGING', 'true').lower() == 'true'

    # Site settings
    SITE_NAME = os.environ.get('SITE_NAME', 'Mareeba Badminton Club')

    # Club-local civil time (GMT+10, no daylight saving)
    CLUB_TIMEZONE = os.environ.get('CLUB_TIMEZONE', 'Australia/Brisbane')

    # Recurring weekly sessions seeded into the catalog
    DEFAULT_SESSIONS = [
        {
            'id': 'friday-evening',
            'day_of_week': 'Friday',
            'start_time': '19:30',
            'end_time': '21:30',
            'max_players': 20,
            'fee': '8.00',
        },
        {
            'id': 'sunday-afternoon',
            'day_of_week': 'Sunday',
            'start_time': '14:30',
            'end_time': '16:30',
            'max_players': 20,
            'fee': '8.00',
        },
        {
            'id': 'monday-evening',
            'day_of_week': 'Monday',
            'start_time': '20:00',
            'end_time': '22:00',
            'max_players': 20,
            'fee': '8.00',
        },
    ]

    # Booking settings
    NEXT_SESSION_HORIZON_DAYS = 14
    AVAILABILITY_CACHE_TTL = float(os.environ.get('AVAILABILITY_CACHE_TTL', 5))

    # Player IDs are short so they survive being copied by hand
    PLAYER_ID_PREFIX = 'MB'
    PLAYER_ID_LENGTH = 3
    PLAYER_ID_MAX_ATTEMPTS = 20

    # Payments are bank transfers reconciled by hand
    PAYMENT_METHOD = 'bank_transfer'
    BANK_ACCOUNT_NAME = os.environ.get('BANK_ACCOUNT_NAME', 'Mareeba Badminton Club')
    BANK_BSB = os.environ.get('BANK_BSB', '')
    BANK_ACCOUNT_NUMBER = os.environ.get('BANK_ACCOUNT_NUMBER', '')


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    SESSION_COOKIE_SECURE = False
    SQLALCHEMY_ECHO = os.environ.get('SQL_DEBUG', 'false').lower() == 'true'


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False

    # Ensure secret key is set in production
    SECRET_KEY = os.environ.get('SECRET_KEY')

    # Use production database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', '').replace('postgres://', 'postgresql://', 1)

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_recycle": 3600,
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
    }

    @staticmethod
    def validate():
        """Raise if settings required in production are missing."""
        if not os.environ.get('SECRET_KEY'):
            raise ValueError("SECRET_KEY environment variable must be set in production")
        if not os.environ.get('DATABASE_URL'):
            raise ValueError("DATABASE_URL environment variable must be set in production")


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    WTF_CSRF_ENABLED = False
    SESSION_COOKIE_SECURE = False
    ENABLE_FILE_LOGGING = False

    # Smaller capacity for testing
    DEFAULT_SESSIONS = [
        {
            'id': 'friday-evening',
            'day_of_week': 'Friday',
            'start_time': '19:30',
            'end_time': '21:30',
            'max_players': 2,
            'fee': '8.00',
        },
        {
            'id': 'sunday-afternoon',
            'day_of_week': 'Sunday',
            'start_time': '14:30',
            'end_time': '16:30',
            'max_players': 20,
            'fee': '8.00',
        },
        {
            'id': 'monday-evening',
            'day_of_week': 'Monday',
            'start_time': '20:00',
            'end_time': '22:00',
            'max_players': 20,
            'fee': '8.00',
        },
    ]


# Configuration dictionary
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig
}


# Helper function to get current configuration
def get_config():
    """Get current configuration instance."""
    config_name = os.environ.get('FLASK_CONFIG', 'development')
    return config_by_name[config_name]()
