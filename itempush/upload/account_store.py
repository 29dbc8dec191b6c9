"""
Account Store

Read-only access to linked platform accounts. The upload engine looks an
account up once per session and never caches or writes it back.
"""

import os
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import yaml

from .exceptions import ConfigurationError
from .models import AccountStatus, LinkedAccount


class AccountStore(ABC):
    """Source of linked-account credentials and connectivity status"""

    @abstractmethod
    def lookup(self, account_id: str) -> Optional[LinkedAccount]:
        """Return the account or None when it does not exist"""
        pass

    @abstractmethod
    def list_accounts(self) -> List[LinkedAccount]:
        pass


class InMemoryAccountStore(AccountStore):
    """Account store backed by a fixed set of accounts"""

    def __init__(self, accounts: Iterable[LinkedAccount] = ()):
        self._accounts: Dict[str, LinkedAccount] = {a.account_id: a for a in accounts}

    def lookup(self, account_id: str) -> Optional[LinkedAccount]:
        return self._accounts.get(account_id)

    def list_accounts(self) -> List[LinkedAccount]:
        return list(self._accounts.values())


class YamlAccountStore(AccountStore):
    """Account store reading a YAML file on every lookup.

    Expected layout::

        accounts:
          - id: main
            login_id: someone@example.com
            secret: ...
            status: CONNECTED
    """

    def __init__(self, path: str):
        self.path = path

    def lookup(self, account_id: str) -> Optional[LinkedAccount]:
        for account in self.list_accounts():
            if account.account_id == account_id:
                return account
        return None

    def list_accounts(self) -> List[LinkedAccount]:
        if not os.path.exists(self.path):
            raise ConfigurationError(f"Accounts file not found: {self.path}")

        try:
            with open(self.path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Accounts file {self.path} is not valid YAML: {e}")

        entries = data.get("accounts", []) if isinstance(data, dict) else data
        if not isinstance(entries, list):
            raise ConfigurationError(f"Accounts file {self.path} must contain a list of accounts")

        return [self._parse_account(entry) for entry in entries]

    def _parse_account(self, entry: dict) -> LinkedAccount:
        try:
            account_id = str(entry["id"])
            login_id = str(entry["login_id"])
            secret = str(entry["secret"])
        except (KeyError, TypeError) as e:
            raise ConfigurationError(f"Invalid account entry in {self.path}: missing {e}")

        status_value = str(entry.get("status", AccountStatus.PENDING.value)).upper()
        try:
            status = AccountStatus(status_value)
        except ValueError:
            status = AccountStatus.FAILED

        last_validated = entry.get("last_validated_at")
        if isinstance(last_validated, str):
            try:
                last_validated = datetime.fromisoformat(last_validated.replace('Z', '+00:00'))
            except ValueError:
                last_validated = None

        return LinkedAccount(
            account_id=account_id,
            login_id=login_id,
            secret=secret,
            status=status,
            display_name=entry.get("display_name"),
            username=entry.get("username"),
            last_validated_at=last_validated,
        )
