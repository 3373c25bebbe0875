from datetime import datetime, timezone

from flask_login import UserMixin

from egghunt import db, bcrypt


def utcnow():
    # Columns are timezone-naive; values are always UTC
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Admin(UserMixin, db.Model):
    __tablename__ = 'admins'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Participant(db.Model):
    __tablename__ = 'participants'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    found_records = db.relationship('FoundRecord', back_populates='participant', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class SecretCode(db.Model):
    __tablename__ = 'secret_codes'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'code': self.code,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class FoundRecord(db.Model):
    """Proof that a participant has been credited for a code (once per pair)."""
    __tablename__ = 'found_records'
    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participants.id'), nullable=False, index=True)
    code_id = db.Column(db.Integer, db.ForeignKey('secret_codes.id'), nullable=False, index=True)
    found_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    participant = db.relationship('Participant', back_populates='found_records')
    code = db.relationship('SecretCode')

    __table_args__ = (
        db.UniqueConstraint('participant_id', 'code_id', name='uq_found_participant_code'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'participant_id': self.participant_id,
            'code_id': self.code_id,
            'found_at': self.found_at.isoformat() if self.found_at else None,
        }
