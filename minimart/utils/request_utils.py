"""Helpers for reading request payloads in the JSON blueprints."""
from flask import request

from minimart.exceptions import BusinessLogicError
from minimart.utils.number_format import parse_int


def get_payload() -> dict:
    """JSON body when sent as JSON, form fields otherwise."""
    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None:
            raise BusinessLogicError('Invalid JSON body')
        if not isinstance(payload, dict):
            raise BusinessLogicError('JSON body must be an object')
        return payload
    return request.form.to_dict()


def require_int(payload: dict, field: str) -> int:
    """Integer field that must be present."""
    value = payload.get(field)
    if value is None or value == '':
        raise BusinessLogicError(f"'{field}' is required")
    parsed = parse_int(value, default=None)
    if parsed is None:
        raise BusinessLogicError(f"'{field}' must be a whole number")
    return parsed


def get_flag(payload: dict, field: str) -> bool:
    value = payload.get(field, False)
    if isinstance(value, str):
        return value.lower() in ('1', 'true', 'yes', 'on')
    return bool(value)
