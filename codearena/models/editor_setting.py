from datetime import datetime

from codearena.extensions import db


class EditorSetting(db.Model):
    """Key-value store for per-workspace editor fields (input, expected output)."""

    __tablename__ = 'editor_setting'
    __table_args__ = (
        db.UniqueConstraint('scope', 'key', name='uq_editor_setting_scope_key'),
    )

    id = db.Column(db.Integer, primary_key=True)
    scope = db.Column(db.String(64), nullable=False, index=True)
    key = db.Column(db.String(100), nullable=False)
    value = db.Column(db.Text, nullable=True)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @staticmethod
    def get(scope, key, default=None):
        """Read a single value, returning *default* if not found."""
        s = EditorSetting.query.filter_by(scope=scope, key=key).first()
        return s.value if s else default

    @staticmethod
    def set(scope, key, value):
        """Create or update a value. Caller must commit the session."""
        s = EditorSetting.query.filter_by(scope=scope, key=key).first()
        if s:
            s.value = value
        else:
            s = EditorSetting(scope=scope, key=key, value=value)
            db.session.add(s)

    def __repr__(self) -> str:
        return f'<EditorSetting scope={self.scope!r} key={self.key!r}>'
