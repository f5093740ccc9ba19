"""Request parsing and error translation shared by the blueprints"""

import logging
from functools import wraps

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from pickem import db
from pickem.errors import PickemError, ValidationError

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 80

# Ids and week numbers are stored as signed 64-bit integers at most
MIN_INT = -(2**63)
MAX_INT = 2**63 - 1


def handle_api_errors(message):
    """
    Translate unexpected failures into a generic 500 for the client.

    PickemError and HTTP errors pass through to the app error handlers;
    anything else is rolled back and logged with its traceback.
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except (PickemError, HTTPException):
                raise
            except Exception:
                db.session.rollback()
                logger.exception(f"{message} [{request.method} {request.path}]")
                return jsonify({"error": message}), 500

        return decorated_function

    return decorator


def get_json_body():
    """Request body as a dict; anything else is treated as empty"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def parse_int(value, name, required=True):
    """Coerce a query/body value to int or raise ValidationError"""
    if value is None or value == "":
        if required:
            raise ValidationError(f"{name} is required")
        return None

    # bool is an int subclass; true/false is never a valid id
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer")

    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(f"{name} must be an integer")

    if not MIN_INT <= number <= MAX_INT:
        raise ValidationError(f"{name} is out of range")
    return number


def parse_username(value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("username is required")

    username = value.strip()
    if len(username) > MAX_USERNAME_LENGTH:
        raise ValidationError(
            f"username must be at most {MAX_USERNAME_LENGTH} characters"
        )
    return username
