"""Custodial wallet API: issues employee signing keys, encrypts them at rest and audits access."""
from .app import create_app
from .config import Settings

__all__ = ["create_app", "Settings"]
