from datetime import datetime

from .database import db
from .encryption import Envelope

class Employee(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(320), unique=True, nullable=False)
    wallet_address = db.Column(db.String(42), unique=True, nullable=False)
    encrypted_private_key = db.Column(db.Text, nullable=False)
    iv = db.Column(db.String(32), nullable=False)
    auth_tag = db.Column(db.String(32), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    last_used = db.Column(db.DateTime)

    @property
    def envelope(self):
        return Envelope(ciphertext=self.encrypted_private_key, iv=self.iv, auth_tag=self.auth_tag)

class Admin(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(320), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(16), nullable=False, default='admin')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

class AuditLog(db.Model):
    __tablename__ = 'audit_log'

    id = db.Column(db.Integer, primary_key=True)
    action = db.Column(db.String(64), nullable=False, index=True)
    employee_email = db.Column(db.String(320), index=True)
    admin_email = db.Column(db.String(320))
    ip_address = db.Column(db.String(64))
    details = db.Column(db.Text)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)
