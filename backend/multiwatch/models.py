from multiwatch import db
from datetime import datetime
import string
import random


class KeyValue(db.Model):
    __tablename__ = 'kv_store'
    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.LargeBinary, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'key': self.key,
            'size': len(self.value or b''),
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class DatabaseStore:
    """Key-value byte store on the kv_store table.

    Calls made from background tasks (the ticker) have no app context, so
    each call opens one.
    """

    def __init__(self, app):
        self.app = app

    def get(self, key):
        with self.app.app_context():
            row = db.session.get(KeyValue, key)
            return bytes(row.value) if row else None

    def set(self, key, value):
        with self.app.app_context():
            try:
                row = db.session.get(KeyValue, key)
                if row:
                    row.value = value
                else:
                    db.session.add(KeyValue(key=key, value=value))
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise

    def delete(self, key):
        with self.app.app_context():
            try:
                KeyValue.query.filter_by(key=key).delete()
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise


def config_key(code):
    return f"clock:{code}:config"


def state_key(code):
    return f"clock:{code}:state"


def generate_clock_code(store, length=4):
    """Generate a unique, short clock code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if store.get(config_key(code)) is None:
            return code
