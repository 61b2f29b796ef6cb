"""
COMMISSION & REMUNERATION LEDGER ENGINE
"""

from .models import CommissionResult, RemunerationResult
from .processor import LedgerProcessor
from .store import InMemoryLedgerStore, LedgerStore

__all__ = [
    'LedgerProcessor',
    'LedgerStore',
    'InMemoryLedgerStore',
    'CommissionResult',
    'RemunerationResult',
]
