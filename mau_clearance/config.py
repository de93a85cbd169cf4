"""
Configuration management for the clearance application
"""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(key: str, default: str) -> bool:
    return os.environ.get(key, default).lower() in ['true', 'on', '1']


class Config:
    """Base configuration class"""

    # Flask Configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database Configuration
    STORAGE_TIMEOUT_SECONDS = int(os.environ.get('STORAGE_TIMEOUT_SECONDS', 10))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        f"mysql+pymysql://{os.environ.get('MYSQL_USER', 'root')}:{os.environ.get('MYSQL_PASSWORD', '')}@{os.environ.get('MYSQL_HOST', 'localhost')}/{os.environ.get('MYSQL_DB', 'clearance')}"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
        'pool_timeout': STORAGE_TIMEOUT_SECONDS,
        'connect_args': {
            'connect_timeout': STORAGE_TIMEOUT_SECONDS,
            'read_timeout': STORAGE_TIMEOUT_SECONDS,
            'write_timeout': STORAGE_TIMEOUT_SECONDS,
        },
    }

    # Certificate Configuration
    CERTIFICATE_SECRET = os.environ.get('CERTIFICATE_SECRET') or os.environ.get('JWT_SECRET')
    CERTIFICATE_VALIDITY_MONTHS = int(os.environ.get('CERTIFICATE_VALIDITY_MONTHS', 1))
    CERTIFICATE_RETENTION_DAYS = int(os.environ.get('CERTIFICATE_RETENTION_DAYS', 365))
    CERTIFICATE_ID_RETRIES = 5
    FRONTEND_URL = os.environ.get('FRONTEND_URL', 'http://localhost:3000')
    INSTITUTION_NAME = os.environ.get('INSTITUTION_NAME', 'Mekdela Amba University')
    VERIFY_HINT_URL = os.environ.get('VERIFY_HINT_URL', 'mau.edu.et/verify')

    # Clearance Configuration
    CLEARANCE_WRITE_RETRIES = 5

    # Notification Configuration
    NOTIFICATIONS_ENABLED = _env_bool('NOTIFICATIONS_ENABLED', 'true')
    NOTIFICATIONS_ASYNC = True

    # Email Configuration
    MAIL_BACKEND = os.environ.get('MAIL_BACKEND', 'smtp')
    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USE_TLS = _env_bool('MAIL_USE_TLS', 'true')
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_SENDER_NAME = os.environ.get('MAIL_SENDER_NAME', 'University Clearance System')
    BREVO_API_KEY = os.environ.get('BREVO_API_KEY')
    BREVO_API_URL = os.environ.get('BREVO_API_URL', 'https://api.brevo.com/v3/smtp/email')

    # Application Settings
    DEBUG = _env_bool('FLASK_DEBUG', 'False')
    TESTING = False

    @staticmethod
    def init_app(app):
        """Initialize application with configuration"""
        pass


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///clearance.db'
    SQLALCHEMY_ENGINE_OPTIONS = {
        'connect_args': {'timeout': Config.STORAGE_TIMEOUT_SECONDS},
    }
    CERTIFICATE_SECRET = Config.CERTIFICATE_SECRET or 'dev-certificate-secret'


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SECRET_KEY = os.environ.get('SECRET_KEY')

    @classmethod
    def init_app(cls, app):
        Config.init_app(app)

        # Ensure secrets are set in production
        if not app.config['SECRET_KEY']:
            raise ValueError("SECRET_KEY environment variable must be set in production")
        if not app.config['CERTIFICATE_SECRET']:
            raise ValueError("CERTIFICATE_SECRET environment variable must be set in production")


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    CERTIFICATE_SECRET = 'test-certificate-secret'
    FRONTEND_URL = 'http://verify.test'
    NOTIFICATIONS_ASYNC = False
    MAIL_USERNAME = None
    MAIL_PASSWORD = None


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
