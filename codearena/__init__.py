import logging
import os

from logging.handlers import RotatingFileHandler

from dotenv import load_dotenv
from flask import Flask, jsonify

from codearena.config import config_map
from codearena.extensions import db

__version__ = '0.2.0'


def create_app(config_name=None):
    """Application factory for creating the Flask app instance.

    Args:
        config_name: Configuration name ('development', 'production' or
                     'testing'). Defaults to FLASK_ENV or 'development'.

    Returns:
        Configured Flask application instance.
    """
    # Load environment variables from the appropriate .env file
    env = config_name or os.environ.get('FLASK_ENV', 'development')
    root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    env_file = os.path.join(root_dir, f'.env.{env}')
    if os.path.exists(env_file):
        load_dotenv(env_file)

    # Also load a local .env if it exists (overrides the environment-specific one)
    dotenv_path = os.path.join(root_dir, '.env')
    if os.path.exists(dotenv_path):
        load_dotenv(dotenv_path, override=True)

    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__)

    config_class = config_map.get(config_name, config_map['development'])
    app.config.from_object(config_class)

    _configure_logging(app)

    db.init_app(app)

    # Shared HTTP clients for the sandbox and the judging API
    from codearena.executor.client import ExecutionClient
    from codearena.services.judge_client import JudgeClient

    app.execution_client = ExecutionClient.from_config(app.config)
    app.judge_client = JudgeClient.from_config(app.config)
    app.logger.info(f'Sandbox endpoint: {app.execution_client.compile_url}')

    _register_blueprints(app)

    @app.route('/health')
    def health():
        return jsonify({'status': 'healthy', 'version': __version__})

    if app.config.get('SCHEDULER_ENABLED'):
        _init_scheduler(app)

    with app.app_context():
        from codearena import models  # noqa: F401
        db.create_all()

    return app


def _configure_logging(app):
    """Set up RotatingFileHandler on the root logger."""
    max_bytes = app.config.get('LOG_FILE_MAX_BYTES', 0)
    if not max_bytes:
        return

    log_dir = os.path.join(app.instance_path, 'logs')
    os.makedirs(log_dir, exist_ok=True)

    log_file = os.path.join(log_dir, 'app.log')
    handler = RotatingFileHandler(
        log_file,
        maxBytes=max_bytes,
        backupCount=app.config.get('LOG_FILE_BACKUP_COUNT', 3),
    )
    handler.setFormatter(logging.Formatter(
        app.config.get('LOG_FORMAT', '%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    ))
    handler.setLevel(logging.DEBUG)

    root = logging.getLogger()
    root.addHandler(handler)
    if root.level == logging.WARNING:
        root.setLevel(logging.DEBUG)


def _register_blueprints(app):
    """Register all application blueprints."""
    from codearena.views.editor import editor_bp
    from codearena.views.contest import contest_bp
    from codearena.views.system import system_bp

    app.register_blueprint(editor_bp)
    app.register_blueprint(contest_bp)
    app.register_blueprint(system_bp)


def _init_scheduler(app):
    """Initialize and start APScheduler for background tasks."""
    from codearena.tasks.scheduler import init_scheduler
    init_scheduler(app)
