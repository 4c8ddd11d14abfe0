# utils/auth.py
from functools import wraps

from flask import jsonify
from flask_login import current_user


def operator_required(f):
    """Decorator to require a signed-in operator (session login or HTTP Basic)."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({
                'success': False,
                'error_code': 'authentication_required',
                'message': 'Operator authentication required'
            }), 401, {'WWW-Authenticate': 'Basic realm="operators"'}

        return f(*args, **kwargs)

    return decorated_function
