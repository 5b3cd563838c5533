import os

from bson import ObjectId
from bson.errors import InvalidId


def get_env_variable(key, default=None):
    """Get environment variable with fallback"""
    return os.getenv(key, default)

def get_env_flag(key, default=False):
    """Read a boolean environment variable (1/true/yes/on)"""
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')

def to_object_id(value):
    """Coerce a string id to ObjectId, None if it is not a valid id"""
    if isinstance(value, ObjectId):
        return value
    # ObjectId(None) would generate a fresh id
    if value is None:
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None

def serialize_document(document):
    """Convert ObjectId fields to strings for easier handling"""
    if document is None:
        return None
    document = dict(document)
    document['_id'] = str(document['_id'])
    if document.get('team_id'):
        document['team_id'] = str(document['team_id'])
    return document
