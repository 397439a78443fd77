import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask Configuration
    SECRET_KEY = os.environ.get('FLASK_SECRET_KEY')
    DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() == 'true'
    PORT = int(os.environ.get('FLASK_RUN_PORT', 8000))

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET')
    JWT_ACCESS_TOKEN_EXPIRES = 3600  # 1 hour
    JWT_REFRESH_TOKEN_EXPIRES = 2592000  # 30 days
    JWT_TOKEN_LOCATION = ["headers", "cookies"]
    JWT_SESSION_COOKIE = False
    JWT_COOKIE_CSRF_PROTECT = True

    # PocketBase
    POCKETBASE_URL = os.environ.get('POCKETBASE_URL', 'http://127.0.0.1:8090')
    POCKETBASE_TIMEOUT = float(os.environ.get('POCKETBASE_TIMEOUT', 10))

    # CORS
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_SUPPORTS_CREDENTIALS = True

    # Cache Configuration
    CACHE_TYPE = "SimpleCache"
    CACHE_DEFAULT_TIMEOUT = 300

    # Map behaviour
    SPOT_FETCH_DEBOUNCE = float(os.environ.get('SPOT_FETCH_DEBOUNCE', 0.3))  # seconds
    SPOT_PAGE_SIZE = 1000
    SPOT_PAGE_SIZE_LOW_ZOOM = 100
    LOW_ZOOM_THRESHOLD = 5
    USER_SPOTS_PAGE_SIZE = 50

    @property
    def JWT_COOKIE_SECURE(self):
        """Set JWT cookie secure based on debug mode."""
        return not self.DEBUG

    @classmethod
    def validate_required_vars(cls) -> list[str]:
        """Validate that all required environment variables are set."""
        required_vars = [
            'FLASK_SECRET_KEY',
            'JWT_SECRET',
            'POCKETBASE_URL',
        ]

        missing_vars = []
        for var in required_vars:
            if not os.environ.get(var):
                missing_vars.append(var)

        return missing_vars


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    CACHE_TYPE = "SimpleCache"  # Consider Redis for production


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    DEBUG = True
    SECRET_KEY = 'test-secret-key'
    JWT_SECRET_KEY = 'test-jwt-secret-key'
    JWT_COOKIE_CSRF_PROTECT = False
    POCKETBASE_URL = 'http://pocketbase.test'


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
