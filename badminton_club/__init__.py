# __init__.py
"""
Application factory for the club booking service.
"""

import os
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from badminton_club.config import config_by_name
from badminton_club.extensions import init_extensions, csrf, db
from badminton_club.services.errors import ClubError, failure


def setup_logging(app):
    """
    Configure structured logging for the application.

    Args:
        app: Flask application instance
    """
    log_format = logging.Formatter(
        '%(asctime)s %(levelname)s %(name)s %(threadName)s : %(message)s'
    )

    handlers = []

    if app.config.get('ENABLE_FILE_LOGGING', True):
        log_dir = app.config.get('LOG_DIR') or os.path.join(app.root_path, 'logs')
        os.makedirs(log_dir, exist_ok=True)

        # File handler with rotation
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'app.log'),
            maxBytes=1024 * 1024 * 10,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(log_format)
        file_handler.setLevel(logging.INFO)
        handlers.append(file_handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_format)
    console_handler.setLevel(logging.DEBUG if app.debug else logging.INFO)
    handlers.append(console_handler)

    app.logger.setLevel(logging.DEBUG if app.debug else logging.INFO)
    for handler in handlers:
        app.logger.addHandler(handler)

    # Service loggers share the application's handlers
    for name in ('booking_service', 'payment_service', 'player_service', 'availability_service',
                 'session_catalog_service', 'next_session_service', 'api', 'admin'):
        service_logger = logging.getLogger(name)
        service_logger.setLevel(logging.INFO)
        for handler in handlers:
            service_logger.addHandler(handler)

    # Forcefully suppress SQLAlchemy logs
    sa_logger = logging.getLogger('sqlalchemy.engine')
    sa_logger.setLevel(logging.WARNING)
    sa_logger.propagate = False


def register_blueprints(app):
    """
    Register all application blueprints.

    Args:
        app: Flask application instance
    """
    try:
        # Import blueprints here to avoid circular imports
        from .controllers.api import api_bp
        from .controllers.admin import admin_bp

        # JSON endpoints authenticate per request; CSRF tokens do not apply
        csrf.exempt(api_bp)
        csrf.exempt(admin_bp)

        app.register_blueprint(api_bp)
        app.register_blueprint(admin_bp)

        app.logger.info("All blueprints registered successfully")

    except ImportError as e:
        app.logger.error(f"Failed to import blueprint: {str(e)}")
        raise


def register_error_handlers(app):
    """
    Register global error handlers.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return jsonify({'success': False, 'error_code': 'http_error', 'message': e.description}), e.code

        app.logger.error(f"Unhandled exception: {str(e)}", exc_info=True)
        return jsonify({
            'success': False,
            'error_code': 'internal_error',
            'message': str(e) if app.debug else 'Internal server error'
        }), 500

    @app.errorhandler(SQLAlchemyError)
    def handle_store_error(e):
        # Reached only by code outside the services, such as the operator loaders
        db.session.rollback()
        app.logger.error(f"Database error outside a service: {str(e)}", exc_info=True)
        return jsonify(failure(ClubError.STORE_UNAVAILABLE)), 503

    @app.errorhandler(404)
    def handle_404(e):
        return jsonify({'success': False, 'error_code': 'not_found', 'message': 'Resource not found'}), 404

    @app.errorhandler(405)
    def handle_405(e):
        return jsonify({'success': False, 'error_code': 'method_not_allowed', 'message': 'Method not allowed'}), 405

    @app.errorhandler(403)
    def handle_403(e):
        return jsonify({'success': False, 'error_code': 'forbidden', 'message': 'Access forbidden'}), 403

    @app.errorhandler(500)
    def handle_500(e):
        app.logger.error(f"Internal server error: {str(e)}")
        return jsonify({'success': False, 'error_code': 'internal_error', 'message': 'Internal server error'}), 500


def register_shell_context(app):
    """
    Register shell context for flask shell command.

    Args:
        app: Flask application instance
    """

    @app.shell_context_processor
    def make_shell_context():
        from badminton_club.models import Booking, Operator, Payment, Player, Session
        return {
            'db': db,
            'Session': Session,
            'Player': Player,
            'Booking': Booking,
            'Payment': Payment,
            'Operator': Operator
        }


def register_health_checks(app):
    """
    Register health check endpoints.

    Args:
        app: Flask application instance
    """

    @app.route('/health')
    def health_check():
        """Basic health check endpoint."""
        return jsonify({
            'status': 'ok',
            'service': app.config.get('SITE_NAME'),
            'timestamp': datetime.now().isoformat(),
            'version': app.config.get('VERSION', '1.0.0')
        })

    @app.route('/health/database')
    def database_health_check():
        """Database health check endpoint."""
        from badminton_club.extensions import check_database_health, get_connection_stats, get_availability_cache

        healthy, message = check_database_health()
        stats = get_connection_stats()
        stats['availability_cache'] = dict(get_availability_cache().stats)

        if healthy:
            try:
                from badminton_club.services.session_catalog_service import SessionCatalogService
                stats['session_count'] = SessionCatalogService.count_sessions()
            except Exception as query_error:
                # If we can't count sessions, log but don't fail the health check
                app.logger.warning(f"Could not get session count: {query_error}")
                stats['session_count'] = 'unavailable'

        return jsonify({
            'status': 'healthy' if healthy else 'unhealthy',
            'message': message,
            'stats': stats,
            'timestamp': datetime.now().isoformat()
        }), 200 if healthy else 503


def create_app(config_name=None, clock=None, availability_cache=None):
    """
    Application factory function.

    Args:
        config_name (str): Configuration name ('development', 'production', 'testing')
        clock: Optional clock override (tests pass a FixedClock)
        availability_cache: Optional AvailabilityCache override

    Returns:
        Flask: Configured Flask application instance
    """
    # Load environment variables
    load_dotenv()

    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.environ.get('FLASK_CONFIG', 'development')
    config_class = config_by_name[config_name]
    if config_name == 'production':
        config_class.validate()
    app.config.from_object(config_class)

    # Setup logging first
    if not app.testing:
        setup_logging(app)
    app.logger.info(f"Starting application with config: {config_name}")

    init_extensions(app, clock=clock, availability_cache=availability_cache)

    # Register components
    register_blueprints(app)
    register_error_handlers(app)
    register_shell_context(app)
    register_health_checks(app)

    # Register CLI commands
    from .cli import register_cli_commands
    register_cli_commands(app)

    return app
