import re

from services.errors import ValidationFailed

OBJECT_ID_PATTERN = re.compile(r'^[0-9a-fA-F]{24}$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def _require_string(body, param):
    value = body.get(param)
    if value is None:
        raise ValidationFailed(param, f"{param} is required")
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailed(param, f"{param} must be a non-empty string")
    return value

def validate_team_id(team_id):
    if not team_id or not OBJECT_ID_PATTERN.match(team_id):
        raise ValidationFailed('teamId', "teamId must be a valid id")
    return team_id

def validate_create(body):
    body = body or {}
    _require_string(body, 'name')
    return body

def validate_update(body):
    body = body or {}
    if 'name' in body:
        _require_string(body, 'name')
    users = body.get('users')
    if users is not None:
        if not isinstance(users, list) or not all(isinstance(u, str) for u in users):
            raise ValidationFailed('users', "users must be a list of strings")
    return body

def validate_add_user(body):
    body = body or {}
    email = _require_string(body, 'email')
    if not EMAIL_PATTERN.match(email):
        raise ValidationFailed('email', "email must be a valid email address")
    return body
