from datetime import datetime, timezone
from models import db


class StoredCollection(db.Model):
    """A whole collection stored as a JSON list under a single key."""

    __tablename__ = "stored_collections"

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(50), unique=True, nullable=False)  # 'SavedActivities', ...
    # JSON: [{"id": "...", "name": "Gaming", "ratio": 1, "color": "#FF6B6B"}, ...]
    # Deferred so that a row whose payload no longer decodes can still be overwritten
    payload = db.deferred(db.Column(db.JSON, nullable=False, default=list))
    version = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "key": self.key,
            "version": self.version,
            "updated_at": self.updated_at.isoformat(),
        }
