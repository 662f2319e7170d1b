from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class EmailRequest(BaseModel):
    email: EmailStr

    @field_validator('email', mode='before')
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator('email', mode='after')
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()

class AdminLogin(EmailRequest):
    password: str = Field(min_length=1)

class WalletCreate(EmailRequest):
    pass

class AuditQuery(BaseModel):
    limit: int = Field(default=100, ge=1, le=1000)


class _Out(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def dump(self):
        return self.model_dump(by_alias=True, mode='json')

class AdminOut(_Out):
    email: str
    role: str

class EmployeeLoginOut(_Out):
    email: str
    address: str

class WalletSummary(_Out):
    email: str
    address: str
    created_at: datetime

class Wallet(WalletSummary):
    last_used: Optional[datetime] = None

class ExportedKey(_Out):
    email: str
    address: str
    private_key: str = Field(repr=False)
