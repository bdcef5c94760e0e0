# ==============================================================================
# babyboss/models.py
# ------------------------------------------------------------------------------
# Defines the database schema using SQLAlchemy ORM models.
# ==============================================================================

from datetime import datetime
from babyboss import db
import json


class StoredCollection(db.Model):
    """
    Key-value store for the record collections (users, customers, orders).
    Each row holds a full snapshot of one collection as a JSON array, and the
    whole snapshot is overwritten on every mutation.
    """
    __tablename__ = 'stored_collection'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), unique=True, nullable=False, index=True)
    value = db.Column(db.Text, nullable=False, default='[]')
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<StoredCollection {self.key}>'

    @classmethod
    def read(cls, key):
        """Decoded value stored under `key`, or None when nothing is stored."""
        value = db.session.scalar(db.select(cls.value).where(cls.key == key))
        return json.loads(value) if value else None

    def set_value(self, records):
        self.value = json.dumps(records, ensure_ascii=False)
