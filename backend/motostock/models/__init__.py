from .enums import Role, LocationType, MotorcycleStatus, TransferStatus, TRANSFER_STATUS_LABELS, TRANSIT_LOCATION
from .locations import Location
from .stock import Motorcycle
from .transfers import Transfer, TransferItem, DocumentSequence
from .sales import Sale
from .auth import User, SessionToken
from .audit import AuditLog

__all__ = [
    'Role', 'LocationType', 'MotorcycleStatus', 'TransferStatus',
    'TRANSFER_STATUS_LABELS', 'TRANSIT_LOCATION',
    'Location', 'Motorcycle',
    'Transfer', 'TransferItem', 'DocumentSequence',
    'Sale',
    'User', 'SessionToken',
    'AuditLog',
]
