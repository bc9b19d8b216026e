from .auth import User, ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_ACCOUNTANT, ALL_ROLES
from .machines import Machine, MachineSettingHistory, MachineChangeLog
from .counters import CounterReading
from .settlements import SettlementRecord, Invoice, DocumentSequence

__all__ = [
    'User', 'ROLE_SUPER_ADMIN', 'ROLE_ADMIN', 'ROLE_ACCOUNTANT', 'ALL_ROLES',
    'Machine', 'MachineSettingHistory', 'MachineChangeLog',
    'CounterReading',
    'SettlementRecord', 'Invoice', 'DocumentSequence',
]
