"""
Token ledger interface consulted by the governor, plus an in-memory
PSP22-style fungible token that implements it
"""

import hashlib
import logging
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class TokenLedger(Protocol):
    """Read-only view of a fungible token ledger"""

    def total_supply(self) -> int:
        ...

    def balance_of(self, account: str) -> int:
        ...


@dataclass
class TokenMetadata:
    """Optional token metadata"""
    name: Optional[str] = None
    symbol: Optional[str] = None
    decimals: int = 0


class GovernanceToken:
    """Fungible token whose balances give voting weight"""

    def __init__(self, deployer: str, initial_supply: int, metadata: Optional[TokenMetadata] = None):
        if initial_supply < 0:
            raise ValueError("Initial supply must not be negative")

        self.metadata = metadata or TokenMetadata()
        self.address = hashlib.sha256(
            f"GOVERNANCE_TOKEN_V1_{deployer}_{initial_supply}".encode()
        ).hexdigest()
        self._total_supply = 0
        self._balances = {}  # account -> balance
        self._allowances = {}  # owner -> spender -> amount
        self._transfer_history = []

        self._mint(deployer, initial_supply)

    @classmethod
    def create(
        cls,
        deployer: str,
        initial_supply: int,
        name: Optional[str] = None,
        symbol: Optional[str] = None,
        decimals: int = 0
    ) -> 'GovernanceToken':
        """Deploy a token minting the whole supply to the deployer"""
        return cls(deployer, initial_supply, TokenMetadata(name, symbol, decimals))

    def _mint(self, account: str, amount: int) -> None:
        self._balances[account] = self.balance_of(account) + amount
        self._total_supply += amount
        logger.debug("Minted %d tokens to %s", amount, account)

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, account: str) -> int:
        """Get token balance for account"""
        return self._balances.get(account, 0)

    def transfer(self, from_account: str, to_account: str, amount: int) -> bool:
        """Transfer tokens between accounts"""

        if amount <= 0:
            return False

        from_balance = self.balance_of(from_account)
        if from_balance < amount:
            return False

        self._balances[from_account] = from_balance - amount
        self._balances[to_account] = self.balance_of(to_account) + amount

        self._transfer_history.append({
            'from': from_account,
            'to': to_account,
            'amount': amount,
            'sequence': len(self._transfer_history)
        })

        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Approve spender to transfer tokens on behalf of owner"""

        if amount < 0:
            return False

        self._allowances.setdefault(owner, {})[spender] = amount
        return True

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get(owner, {}).get(spender, 0)

    def transfer_from(self, spender: str, from_account: str, to_account: str, amount: int) -> bool:
        """Transfer tokens using allowance"""

        allowed = self.allowance(from_account, spender)
        if allowed < amount:
            return False

        if not self.transfer(from_account, to_account, amount):
            return False

        self._allowances[from_account][spender] = allowed - amount
        return True

    def get_transfer_history(self) -> List[Dict[str, Any]]:
        return self._transfer_history.copy()

    def to_dict(self) -> dict:
        """Serialize token to dictionary"""
        return {
            'address': self.address,
            'metadata': asdict(self.metadata),
            'balances': dict(self._balances),
            'allowances': {owner: dict(spenders) for owner, spenders in self._allowances.items()},
            'transfer_history': self.get_transfer_history(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'GovernanceToken':
        """Deserialize token from dictionary"""
        token = cls.__new__(cls)
        token.metadata = TokenMetadata(**data['metadata'])
        token.address = data['address']
        token._balances = dict(data['balances'])
        token._total_supply = sum(token._balances.values())
        token._allowances = {owner: dict(spenders) for owner, spenders in data.get('allowances', {}).items()}
        token._transfer_history = list(data.get('transfer_history', []))
        return token
