"""
Service configuration.

Secrets are read once from the environment (optionally via a .env file) and
validated before the app is built. A missing or mis-sized master key, or a
missing JWT signing secret, stops the process at startup.

Never log key material: only the non-secret settings are safe to print.
"""
import os
import logging
from datetime import timedelta

from dotenv import load_dotenv
from pydantic import BaseModel, Field, SecretBytes, SecretStr, field_validator
from pydantic import ValidationError as PydanticValidationError

from .errors import ConfigurationError

MASTER_KEY_LENGTH = 32

_TRUE_VALUES = ('true', '1', 'yes', 'on')


def _env_flag(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


class Settings(BaseModel):
    """Validated, immutable process settings."""

    encryption_key: SecretBytes
    jwt_secret_key: SecretStr
    jwt_token_ttl_hours: int = Field(default=24, ge=1)
    database_uri: str = 'sqlite:///custody.sqlite3'
    admin_email: str = 'admin@company.com'
    admin_password: SecretStr | None = None
    cors_origins: list[str] = Field(default_factory=lambda: ['http://localhost:3000'])
    ratelimit_default: str = '100 per minute'
    ratelimit_enabled: bool = True
    debug: bool = False
    log_level: str = 'INFO'

    model_config = {'frozen': True}

    @field_validator('encryption_key')
    @classmethod
    def validate_encryption_key(cls, v: SecretBytes) -> SecretBytes:
        """The master key must be exactly 32 bytes (AES-256)."""
        size = len(v.get_secret_value())
        if size != MASTER_KEY_LENGTH:
            raise ValueError(
                f"ENCRYPTION_KEY must be exactly {MASTER_KEY_LENGTH} bytes, got {size}"
            )
        return v

    @field_validator('jwt_secret_key')
    @classmethod
    def validate_jwt_secret(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError('JWT_SECRET_KEY must not be empty')
        return v

    @field_validator('admin_email')
    @classmethod
    def normalize_admin_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def token_ttl(self) -> timedelta:
        return timedelta(hours=self.jwt_token_ttl_hours)

    @classmethod
    def from_env(cls, dotenv_path=None) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ConfigurationError: If a required variable is missing or invalid.
        """
        load_dotenv(dotenv_path)

        encryption_key = os.environ.get('ENCRYPTION_KEY')
        if not encryption_key:
            raise ConfigurationError('ENCRYPTION_KEY environment variable is not set')
        jwt_secret = os.environ.get('JWT_SECRET_KEY')
        if not jwt_secret:
            raise ConfigurationError('JWT_SECRET_KEY environment variable is not set')

        values = {
            'encryption_key': encryption_key.encode('utf-8'),
            'jwt_secret_key': jwt_secret,
            'ratelimit_enabled': _env_flag('RATELIMIT_ENABLED', True),
            'debug': _env_flag('FLASK_DEBUG', False),
        }
        optional = {
            'jwt_token_ttl_hours': 'JWT_TOKEN_TTL_HOURS',
            'database_uri': 'SQLALCHEMY_DATABASE_URI',
            'admin_email': 'ADMIN_EMAIL',
            'admin_password': 'ADMIN_PASSWORD',
            'ratelimit_default': 'RATELIMIT_DEFAULT',
            'log_level': 'LOG_LEVEL',
        }
        for field, name in optional.items():
            if os.environ.get(name):
                values[field] = os.environ[name]
        origins = os.environ.get('CORS_ORIGINS')
        if origins:
            values['cors_origins'] = [o.strip() for o in origins.split(',') if o.strip()]

        return cls.build(**values)

    @classmethod
    def build(cls, **values) -> "Settings":
        """Validate ``values``, reporting failures as ConfigurationError."""
        try:
            return cls(**values)
        except PydanticValidationError as e:
            # Only field names and messages; pydantic input echoes could hold secrets.
            problems = '; '.join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise ConfigurationError(f"Invalid configuration: {problems}") from None
