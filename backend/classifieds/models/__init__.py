from .auth import User, SessionToken
from .catalog import Category
from .ads import Ad, Payment
from .audit import AuditLog

__all__ = [
    'User', 'SessionToken',
    'Category',
    'Ad', 'Payment',
    'AuditLog',
]
