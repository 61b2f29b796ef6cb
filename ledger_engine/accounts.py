"""
Chart of Accounts Gateway

Resolves the specialized accounts (passage-commission, passage-tax, charge,
salary, product, tax, client) used by the engine, creating them lazily.
"""

import logging

from .config import EngineConfig
from .errors import AccountConflict
from .models import Account, AccountType
from .retry import with_retry
from .store import LedgerStore

logger = logging.getLogger(__name__)


class ChartOfAccountsGateway:
    """Get-or-create of singleton accounts per (owner, type).

    Usage:
        gateway = ChartOfAccountsGateway(store)
        passage = gateway.get_or_create(agency_id, AccountType.PASSAGE_COMMISSION)
    """

    def __init__(self, store: LedgerStore, config: EngineConfig | None = None):
        self.store = store
        self.config = config or EngineConfig()

    def get_or_create(self, owner_id: int, account_type: AccountType) -> Account:
        """
        Return the account of account_type owned by owner_id, creating it with
        zero balance on first access.

        A concurrent creation by another worker surfaces as AccountConflict
        from the store; the lookup is then repeated, up to the configured
        number of attempts.
        """
        return with_retry(
            lambda: self._get_or_create_once(owner_id, account_type),
            f"get_or_create {account_type.value} for owner {owner_id}",
            attempts=self.config.retry_attempts,
            backoff_seconds=self.config.retry_backoff_seconds,
        )

    def _get_or_create_once(self, owner_id: int, account_type: AccountType) -> Account:
        account = self.store.find_account(account_type, owner_id)
        if account is not None:
            return account

        number = self.account_number(owner_id, account_type)
        try:
            account = self.store.insert_account(account_type, owner_id, number)
        except AccountConflict:
            existing = self.store.find_account(account_type, owner_id)
            if existing is None:
                raise
            return existing

        logger.info(f"Created {account_type.value} account {number} for {account_type.owner_kind.value.lower()} {owner_id}")
        return account

    @staticmethod
    def account_number(owner_id: int, account_type: AccountType) -> str:
        """Deterministic number: <prefix>-<owner id, 6 digits>."""
        return f"{account_type.number_prefix}-{owner_id:06d}"

    # Named accessors for the accounts the engine moves value through

    def client_account(self, client_id: int) -> Account:
        return self.get_or_create(client_id, AccountType.CLIENT)

    def salary_account(self, collector_id: int) -> Account:
        return self.get_or_create(collector_id, AccountType.COLLECTOR_SALARY)

    def passage_commission_account(self, agency_id: int) -> Account:
        return self.get_or_create(agency_id, AccountType.PASSAGE_COMMISSION)

    def passage_tax_account(self, agency_id: int) -> Account:
        return self.get_or_create(agency_id, AccountType.PASSAGE_TAX)

    def charge_account(self, agency_id: int) -> Account:
        return self.get_or_create(agency_id, AccountType.CHARGE)

    def product_account(self, agency_id: int) -> Account:
        return self.get_or_create(agency_id, AccountType.PRODUCT)

    def tax_account(self, agency_id: int) -> Account:
        return self.get_or_create(agency_id, AccountType.TAX)
