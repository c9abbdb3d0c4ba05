import os
import logging
from logging.handlers import RotatingFileHandler
from flask import Flask


def configure_logging(app):
    """Configure application logging"""

    # Create logs directory if it doesn't exist
    log_dir = app.config['LOGS_DIR']
    os.makedirs(log_dir, exist_ok=True)

    log_level = logging.getLevelName(str(app.config.get('LOG_LEVEL', 'INFO')).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    )
    console_handler.setFormatter(console_formatter)

    # File handler
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, app.config['LOG_FILE']),
        maxBytes=app.config['LOG_MAX_BYTES'],
        backupCount=app.config['LOG_BACKUP_COUNT']
    )
    file_handler.setLevel(log_level)
    file_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'
    )
    file_handler.setFormatter(file_formatter)

    # Configure root logger; force replaces handlers from an earlier create_app()
    logging.basicConfig(level=log_level, handlers=[console_handler, file_handler], force=True)

    app.logger.setLevel(log_level)
    app.logger.info(f"Logging configured (level: {logging.getLevelName(log_level)})")


def create_app(config_name=None, repository=None, overrides=None):
    """
    Flask application factory

    Args:
        config_name: Key into pos_backup.config.config (default: $FLASK_ENV or production)
        repository: Data store to back snapshots and exports (default: from config)
        overrides: Config values applied on top of the config class
    """
    app = Flask(__name__)

    # Load configuration
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'production')

    from pos_backup.config import config
    app.config.from_object(config[config_name])
    if overrides:
        app.config.update(overrides)

    return init_app(app, repository=repository)


def init_app(app, repository=None):
    """Wire logging, backup services, routes and the scheduler into a configured app."""

    # Configure logging
    configure_logging(app)

    from pos_backup.services import build_services
    services = build_services(app.config, repository=repository)
    app.extensions['pos_backup'] = services

    # Register blueprints
    from pos_backup.routes import backup_routes
    app.register_blueprint(backup_routes.bp)

    # Health check endpoint
    @app.route('/health')
    def health():
        return {'status': 'healthy'}, 200

    # Initialize and start scheduler (only in designated worker or development child process)
    import atexit

    is_reloader_child = os.environ.get('WERKZEUG_RUN_MAIN') == 'true'
    is_development = app.config.get('DEBUG', False)
    is_scheduler_worker = os.environ.get('SCHEDULER_WORKER', 'true').lower() == 'true'

    # Scheduler initialization logic:
    # - Development mode: Only in Flask reloader child process (not parent)
    # - Production mode: Only in designated scheduler worker (SCHEDULER_WORKER=true)
    if not app.config.get('SCHEDULER_ENABLED', True):
        should_init_scheduler = False
    elif is_development:
        should_init_scheduler = is_reloader_child
        app.logger.info(f"Development mode: is_reloader_child={is_reloader_child}")
    else:
        should_init_scheduler = is_scheduler_worker
        app.logger.info(f"Production mode: is_scheduler_worker={is_scheduler_worker}")

    if should_init_scheduler:
        app.logger.info("Initializing backup scheduler in this process...")
        services.scheduler.init()
        services.scheduler.start()

        # Stop scheduler on app shutdown
        atexit.register(services.scheduler.stop)
    else:
        app.logger.info("Scheduler initialization skipped in this process")

    return app


def get_services(app=None):
    """Backup services of the given (or current) Flask app."""
    if app is None:
        from flask import current_app
        app = current_app
    return app.extensions['pos_backup']
