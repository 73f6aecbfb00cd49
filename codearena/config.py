import os


def _flag(name, default):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes')


def _optional_float(name):
    value = os.environ.get(name, '').strip()
    return float(value) if value else None


class BaseConfig:
    """Base configuration shared across all environments."""

    # Flask core
    SECRET_KEY = os.environ.get('SECRET_KEY', 'fallback-secret-key-change-me')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Database (editor input/expected cache)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'SQLALCHEMY_DATABASE_URI', 'sqlite:///dev.db'
    )

    # Sandbox compiler service
    COMPILER_API_BASE = os.environ.get('COMPILER_API', '')
    PUBLIC_ORIGIN = os.environ.get('PUBLIC_ORIGIN', 'http://127.0.0.1:8000')
    # None means no client-side timeout on sandbox calls
    COMPILER_TIMEOUT = _optional_float('COMPILER_TIMEOUT')

    # Judging / problem metadata API
    JUDGE_API_BASE = os.environ.get('JUDGE_API_BASE', 'http://localhost:5000/api')
    JUDGE_TIMEOUT = float(os.environ.get('JUDGE_TIMEOUT', '12'))
    JUDGE_RETRIES = int(os.environ.get('JUDGE_RETRIES', '2'))
    JUDGE_RETRY_DELAY = float(os.environ.get('JUDGE_RETRY_DELAY', '0.6'))

    # Batch pacing between test cases, in seconds
    BATCH_CASE_DELAY = float(os.environ.get('BATCH_CASE_DELAY', '0.3'))

    # Output comparison defaults
    IGNORE_WHITESPACE = _flag('IGNORE_WHITESPACE', 'true')
    IGNORE_CASE = _flag('IGNORE_CASE', 'false')

    # Scheduler (executor health probe)
    SCHEDULER_ENABLED = _flag('SCHEDULER_ENABLED', 'false')
    EXECUTOR_PROBE_MINUTES = int(os.environ.get('EXECUTOR_PROBE_MINUTES', '5'))

    # Live workspaces / contest sessions kept in memory
    SESSION_IDLE_SECONDS = int(os.environ.get('SESSION_IDLE_SECONDS', '3600'))
    SESSION_REGISTRY_MAX = int(os.environ.get('SESSION_REGISTRY_MAX', '500'))

    # Logging
    LOG_FILE_MAX_BYTES = int(os.environ.get('LOG_FILE_MAX_BYTES', '0'))
    LOG_FILE_BACKUP_COUNT = int(os.environ.get('LOG_FILE_BACKUP_COUNT', '3'))
    LOG_FORMAT = os.environ.get('LOG_FORMAT', '%(asctime)s [%(levelname)s] %(name)s: %(message)s')


class DevelopmentConfig(BaseConfig):
    """Development environment configuration."""

    DEBUG = True
    SCHEDULER_ENABLED = False


class ProductionConfig(BaseConfig):
    """Production environment configuration."""

    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'SQLALCHEMY_DATABASE_URI', 'sqlite:///prod.db'
    )
    SCHEDULER_ENABLED = _flag('SCHEDULER_ENABLED', 'true')
    LOG_FILE_MAX_BYTES = int(os.environ.get('LOG_FILE_MAX_BYTES', str(5 * 1024 * 1024)))


class TestingConfig(BaseConfig):
    """Testing environment configuration."""

    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SECRET_KEY = 'test-secret-key'
    SCHEDULER_ENABLED = False
    COMPILER_API_BASE = 'http://sandbox.test'
    JUDGE_API_BASE = 'http://judge.test/api'
    JUDGE_RETRY_DELAY = 0
    BATCH_CASE_DELAY = 0
    LOG_FILE_MAX_BYTES = 0


config_map = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}
