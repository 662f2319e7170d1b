"""
Custody operations: create, fetch, list and export employee wallets.

Each operation authorizes the caller first, then touches storage. Private key
material exists in plaintext only between generation and encryption, or
between decryption and the export response.
"""
import logging
from datetime import datetime

from sqlalchemy import exc as sa_exc

from .audit import AuditAction, AuditEntry
from .errors import Conflict, IntegrityError, NotFound
from .keys import derive_address
from .models import Employee
from .policy import Action, authorize
from .schemas import ExportedKey, Wallet, WalletSummary

logger = logging.getLogger(__name__)


class CustodyService:

    def __init__(self, db, cipher, keys, audit):
        self.db = db
        self.cipher = cipher
        self.keys = keys
        self.audit = audit

    def _get_employee(self, email):
        employee = Employee.query.filter_by(email=email).first()
        if employee is None:
            raise NotFound()
        return employee

    def create_wallet(self, caller, email, ip_address=None) -> WalletSummary:
        authorize(Action.CREATE_WALLET, caller, email)

        if Employee.query.filter_by(email=email).first() is not None:
            raise Conflict()

        keypair = self.keys.generate()
        envelope = self.cipher.encrypt(keypair.private_key)
        employee = Employee(
            email=email,
            wallet_address=keypair.address,
            encrypted_private_key=envelope.ciphertext,
            iv=envelope.iv,
            auth_tag=envelope.auth_tag,
        )
        self.db.session.add(employee)
        try:
            self.db.session.commit()
        except sa_exc.IntegrityError:
            # Lost a race with a concurrent create for the same email.
            self.db.session.rollback()
            raise Conflict() from None

        logger.info("Created wallet %s for %s", employee.wallet_address, email)
        self.audit.record(AuditEntry(
            action=AuditAction.WALLET_CREATED,
            employee_email=email,
            admin_email=caller.email,
            ip_address=ip_address,
        ))
        return WalletSummary(
            email=employee.email,
            address=employee.wallet_address,
            created_at=employee.created_at,
        )

    def get_wallet(self, caller, email) -> Wallet:
        authorize(Action.READ_WALLET, caller, email)

        employee = self._get_employee(email)
        employee.last_used = datetime.utcnow()
        self.db.session.commit()
        return Wallet(
            email=employee.email,
            address=employee.wallet_address,
            created_at=employee.created_at,
            last_used=employee.last_used,
        )

    def list_wallets(self, caller) -> list[Wallet]:
        authorize(Action.LIST_WALLETS, caller)

        employees = Employee.query.order_by(Employee.created_at.desc(), Employee.id.desc()).all()
        return [Wallet(
            email=e.email,
            address=e.wallet_address,
            created_at=e.created_at,
            last_used=e.last_used,
        ) for e in employees]

    def export_private_key(self, caller, email, ip_address=None) -> ExportedKey:
        """Decrypt and return an employee's private key.

        The audit entry is written before the result is built; a failed audit
        write does not block the export.

        Raises:
            AuthorizationError: Caller is not an admin.
            NotFound: No wallet for ``email``.
            IntegrityError: Stored envelope fails authentication or no longer
                matches the stored address.
        """
        authorize(Action.EXPORT_KEY, caller, email)

        employee = self._get_employee(email)
        private_key = self.cipher.decrypt(employee.envelope)
        if derive_address(private_key) != employee.wallet_address:
            raise IntegrityError('decrypted key does not match stored address')

        logger.warning("Private key for %s exported by %s", email, caller.email)
        self.audit.record(AuditEntry(
            action=AuditAction.PRIVATE_KEY_EXPORTED,
            employee_email=email,
            admin_email=caller.email,
            ip_address=ip_address,
            details=f"Private key exported by admin {caller.email}",
        ))
        return ExportedKey(email=employee.email, address=employee.wallet_address, private_key=private_key)

    def audit_log(self, caller, limit=100):
        authorize(Action.READ_AUDIT_LOG, caller)
        return self.audit.list(limit)
