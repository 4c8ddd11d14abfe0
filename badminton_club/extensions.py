# extensions.py
"""
Flask extensions initialization.
This file initializes all Flask extensions to avoid circular imports.
Extensions are initialized here and then bound to the app in the application factory.
"""

import logging
import threading
import time

from flask import current_app, request
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect
from sqlalchemy import text

from badminton_club.utils.cache import AvailabilityCache
from badminton_club.utils.clock import ClubClock

# Initialize extensions without app binding
db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()
login_manager = LoginManager()

# Connection monitoring
connection_stats = {
    'failed_checks': 0,
    'last_check': 0,
    'healthy': True
}
connection_lock = threading.Lock()

logger = logging.getLogger(__name__)


def get_connection_stats():
    """
    Get current database connection statistics.

    Returns:
        dict: Connection statistics
    """
    with connection_lock:
        return connection_stats.copy()


def check_database_health():
    """
    Check if the database connection is healthy.
    This function requires an active Flask application context.

    Returns:
        tuple: (bool, str) indicating health status and message
    """
    try:
        connection = db.engine.connect()
        try:
            with connection.begin():
                result = connection.execute(text("SELECT 1"))
                result.fetchone()

            with connection_lock:
                connection_stats['healthy'] = True
                connection_stats['last_check'] = time.time()

            return True, "Database connection is healthy"
        finally:
            connection.close()

    except Exception as e:
        logger.error(f"Database health check failed: {e}")

        with connection_lock:
            connection_stats['healthy'] = False
            connection_stats['failed_checks'] += 1
            connection_stats['last_check'] = time.time()

        return False, f"Database connection failed: {str(e)}"


def init_extensions(app, clock=None, availability_cache=None):
    """
    Initialize all extensions with proper order and configuration.

    Args:
        app: Flask application instance
        clock: Optional clock override (tests pin time with FixedClock)
        availability_cache: Optional cache override
    """
    # Step 1: Initialize database first (required by other extensions)
    db.init_app(app)
    migrate.init_app(app, db)

    # Step 2: Initialize Flask-Login for the operator gate
    login_manager.init_app(app)
    login_manager.session_protection = 'basic'

    # Step 3: Initialize CSRF protection (JSON blueprints are exempted at registration)
    csrf.init_app(app)

    # Step 4: Club clock and availability cache, injected into the services
    app.extensions['club_clock'] = clock or ClubClock(app.config.get('CLUB_TIMEZONE', 'Australia/Brisbane'))
    app.extensions['availability_cache'] = availability_cache or AvailabilityCache(
        ttl=app.config.get('AVAILABILITY_CACHE_TTL', 5)
    )

    # Step 5: Operator loaders (requires db and Operator model)
    @login_manager.user_loader
    def load_operator(operator_id):
        # Import here to avoid circular imports
        from badminton_club.models import Operator

        operator = db.session.get(Operator, operator_id)
        if operator and operator.is_active:
            return operator
        return None

    @login_manager.request_loader
    def load_operator_from_request(req):
        """Accept HTTP Basic credentials so scripts can call the admin API."""
        from badminton_club.models import Operator

        auth = req.authorization
        if not auth or not auth.username or not auth.password:
            return None

        operator = Operator.query.filter_by(username=auth.username.strip().lower()).first()
        if operator and operator.is_active and operator.check_password(auth.password):
            return operator

        logger.warning(f"Rejected operator credentials for '{auth.username}' from {request.remote_addr}")
        return None

    app.logger.info("Extensions initialized successfully in correct order")


def get_availability_cache():
    """Return the availability cache registered on the current application."""
    return current_app.extensions['availability_cache']
