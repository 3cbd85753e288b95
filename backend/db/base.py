from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()


def touch_updated_at(mapper, connection, target):
    """ORM event: stamp `updated_at` on every update, overriding any value the
    caller assigned."""
    target.updated_at = datetime.now(timezone.utc)
