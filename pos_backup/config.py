import os


def _csv_env(name, default):
    value = os.environ.get(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    """Base configuration"""

    BASE_DIR = os.path.abspath(os.environ.get('POS_BASE_DIR') or os.getcwd())

    # Backup storage
    BACKUP_ROOT = os.environ.get('BACKUP_ROOT') or os.path.join(BASE_DIR, 'backups')
    UPLOADS_DIR = os.environ.get('UPLOADS_DIR') or os.path.join(BASE_DIR, 'public', 'uploads')
    LOGS_DIR = os.environ.get('LOGS_DIR') or os.path.join(BASE_DIR, 'logs')

    # Retention
    MAX_BACKUPS = int(os.environ.get('MAX_BACKUPS', 30))

    # Collections written by the database snapshot
    BACKUP_COLLECTIONS = _csv_env('BACKUP_COLLECTIONS', [
        'products',
        'sales',
        'customers',
        'users',
        'suppliers',
        'purchaseorders',
    ])

    # Data store (None = in-memory repository)
    DATA_STORE_URL = os.environ.get('DATA_STORE_URL')
    SEED_DEMO_DATA = False

    # Scheduler
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'true').lower() == 'true'
    SCHEDULER_TIMEZONE = os.environ.get('SCHEDULER_TIMEZONE', 'UTC')
    BACKUP_SCHEDULE_CRON = os.environ.get('BACKUP_SCHEDULE_CRON', '0 2 * * *')  # Daily at 2 AM
    CLEANUP_SCHEDULE_CRON = os.environ.get('CLEANUP_SCHEDULE_CRON', '0 3 * * 0')  # Sunday at 3 AM

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE', 'pos-backup.log')
    LOG_MAX_BYTES = int(os.environ.get('LOG_MAX_BYTES', 10485760))  # 10MB
    LOG_BACKUP_COUNT = int(os.environ.get('LOG_BACKUP_COUNT', 10))


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = 'DEBUG'
    SEED_DEMO_DATA = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Test configuration - scheduler off, no demo data"""
    TESTING = True
    DEBUG = False
    SCHEDULER_ENABLED = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': ProductionConfig
}
