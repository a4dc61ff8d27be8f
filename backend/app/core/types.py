"""Custom SQLAlchemy types and small column helpers shared by the models"""
from datetime import datetime, timezone
from sqlalchemy import TypeDecorator, String, JSON
import uuid


def generate_uuid():
    """Generate a UUID string"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GUID(TypeDecorator):
    """Platform-independent GUID type that stores UUIDs as VARCHAR(36)"""
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value


class JSONList(TypeDecorator):
    """
    JSON array column that never yields NULL.

    Embedded collections (student ids, attendees, discussion points, blocks)
    are always rewritten as a whole list by a conditional UPDATE, so no
    in-place mutation tracking is needed.
    """
    impl = JSON
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return []
        return list(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        return value
