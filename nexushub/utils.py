"""
NexusHub - Request Utilities
Safe parsing helpers for request payloads
"""
from typing import Optional

from flask import request

from nexushub.errors import ValidationRejected


def safe_int(value, default=0, min_val=None, max_val=None):
    """
    Safely parse an integer from a request parameter.
    
    Args:
        value: The value to parse (string or None)
        default: Default value if parsing fails
        min_val: Minimum allowed value (optional)
        max_val: Maximum allowed value (optional)
    
    Returns:
        int: Parsed integer or default
    """
    try:
        result = int(value) if value is not None else default
    except (ValueError, TypeError):
        result = default
    
    if min_val is not None:
        result = max(result, min_val)
    if max_val is not None:
        result = min(result, max_val)
    
    return result


def safe_bool(value, default=False):
    """
    Safely parse a boolean from a request parameter.
    Accepts: true, false, 1, 0, yes, no (case insensitive)
    """
    if value is None:
        return default
    
    if isinstance(value, bool):
        return value
    
    if isinstance(value, str):
        return value.lower() in ('true', '1', 'yes', 'on')
    
    return bool(value)


def get_json_body(required: Optional[list] = None) -> dict:
    """
    Read the JSON request body, rejecting missing required fields
    
    Raises:
        ValidationRejected: body is not a JSON object or a required field is empty
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationRejected('Request body must be a JSON object')
    
    for field in required or []:
        if data.get(field) in (None, ''):
            raise ValidationRejected(f'{field} is required')
    return data
