"""
Execution environment seen by the governor: who is calling, what time
it is, and the native balances of accounts including the contract's own
"""

import hashlib
import logging
from typing import List, Optional

from .errors import TransferError

logger = logging.getLogger(__name__)

CONTRACT_ACCOUNT = "governor-contract"


class ExecutionEnvironment:
    """Caller identity, block time and native value transfers"""

    def __init__(
        self,
        caller: Optional[str] = None,
        block_timestamp: int = 0,
        contract_account: str = CONTRACT_ACCOUNT,
        contract_balance: int = 0
    ):
        self.contract_account = contract_account
        self.caller = caller
        self.block_timestamp = block_timestamp
        self._balances = {contract_account: contract_balance}
        self._transfer_history = []

    def set_caller(self, caller: str) -> None:
        self.caller = caller

    def set_block_timestamp(self, timestamp: int) -> None:
        self.block_timestamp = timestamp

    def advance_time(self, seconds: int) -> int:
        """Move the block clock forward and return the new timestamp"""
        if seconds < 0:
            raise ValueError("Time only moves forward")
        self.block_timestamp += seconds
        return self.block_timestamp

    def set_balance(self, account: str, balance: int) -> None:
        if balance < 0:
            raise ValueError("Balance must not be negative")
        self._balances[account] = balance

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def balance(self) -> int:
        """Native balance held by the contract itself"""
        return self.balance_of(self.contract_account)

    def transfer(self, to: str, amount: int) -> dict:
        """Move `amount` from the contract to `to`, all or nothing"""

        if amount <= 0:
            raise TransferError(f"Invalid transfer amount {amount}")

        available = self.balance()
        if amount > available:
            raise TransferError(f"Insufficient contract balance: need {amount}, have {available}")

        self._balances[self.contract_account] = available - amount
        self._balances[to] = self.balance_of(to) + amount

        record = {
            'to': to,
            'amount': amount,
            'timestamp': self.block_timestamp,
            'transaction_id': hashlib.sha256(
                f"{to}_{amount}_{len(self._transfer_history)}".encode()
            ).hexdigest()[:16]
        }
        self._transfer_history.append(record)
        logger.debug("Transferred %d to %s (tx %s)", amount, to, record['transaction_id'])

        return record

    def get_transfer_history(self) -> List[dict]:
        return self._transfer_history.copy()

    def to_dict(self) -> dict:
        """Serialize environment to dictionary"""
        return {
            'contract_account': self.contract_account,
            'caller': self.caller,
            'block_timestamp': self.block_timestamp,
            'balances': dict(self._balances),
            'transfer_history': self.get_transfer_history(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ExecutionEnvironment':
        """Deserialize environment from dictionary"""
        env = cls(
            caller=data.get('caller'),
            block_timestamp=data['block_timestamp'],
            contract_account=data['contract_account'],
        )
        env._balances = dict(data['balances'])
        env._transfer_history = list(data.get('transfer_history', []))
        return env
