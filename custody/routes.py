import logging
from datetime import datetime, timezone
from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError as PydanticValidationError

from .auth import authenticated, login_admin, login_employee
from .errors import CustodyError, OperationFailed, ValidationError
from .extensions import limiter
from .schemas import AdminLogin, AdminOut, AuditQuery, EmailRequest, EmployeeLoginOut, WalletCreate

logger = logging.getLogger(__name__)

bp = Blueprint('custody', __name__)


def custody():
    return current_app.extensions['custody']


def parse(model, data):
    try:
        return model.model_validate(data if data is not None else {})
    except PydanticValidationError as e:
        err = e.errors()[0]
        field = '.'.join(str(p) for p in err['loc']) or 'body'
        raise ValidationError(f"{field}: {err['msg']}") from None


def guarded(message):
    """Turn unexpected failures of a view into a 500 carrying only ``message``."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except CustodyError as e:
                if e.status_code < 500:
                    raise
                logger.error("%s: %s", message, getattr(e, 'reason', e.message))
                raise OperationFailed(message) from None
            except Exception:
                logger.exception(message)
                raise OperationFailed(message) from None
        return wrapper
    return decorator


def path_email(email):
    return email.strip().lower()


@bp.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()})

@bp.route('/admin/login', methods=['POST'])
@limiter.limit("5 per minute")
@guarded('Login failed')
def admin_login():
    data = parse(AdminLogin, request.get_json(silent=True))
    token, admin = login_admin(data.email, data.password)
    return jsonify({'token': token, 'admin': AdminOut(email=admin.email, role=admin.role).dump()})

@bp.route('/employee/login', methods=['POST'])
@limiter.limit("5 per minute")
@guarded('Login failed')
def employee_login():
    data = parse(EmailRequest, request.get_json(silent=True))
    token, employee = login_employee(data.email)
    return jsonify({
        'token': token,
        'employee': EmployeeLoginOut(email=employee.email, address=employee.wallet_address).dump(),
    })

@bp.route('/wallets/create', methods=['POST'])
@limiter.limit("10 per minute")
@authenticated
@guarded('Failed to create wallet')
def create_wallet(caller):
    data = parse(WalletCreate, request.get_json(silent=True))
    wallet = custody().create_wallet(caller, data.email, ip_address=request.remote_addr)
    return jsonify({'success': True, 'employee': wallet.dump()}), 201

@bp.route('/wallets', methods=['GET'])
@authenticated
@guarded('Failed to list wallets')
def list_wallets(caller):
    wallets = custody().list_wallets(caller)
    return jsonify({'employees': [w.dump() for w in wallets]})

@bp.route('/wallets/<email>', methods=['GET'])
@authenticated
@guarded('Failed to fetch wallet')
def get_wallet(caller, email):
    wallet = custody().get_wallet(caller, path_email(email))
    return jsonify({'employee': wallet.dump()})

@bp.route('/wallets/export/<email>', methods=['POST'])
@limiter.limit("5 per minute")
@authenticated
@guarded('Failed to export private key')
def export_private_key(caller, email):
    exported = custody().export_private_key(caller, path_email(email), ip_address=request.remote_addr)
    # Plaintext key leaves the service here; the export is already audited.
    return jsonify(exported.dump())

@bp.route('/audit', methods=['GET'])
@authenticated
@guarded('Failed to read audit log')
def audit_log(caller):
    query = parse(AuditQuery, request.args.to_dict())
    entries = custody().audit_log(caller, limit=query.limit)
    return jsonify({'entries': [e.to_dict() for e in entries]})
