"""
Token custody collaborator.

The registry never moves tokens itself. Operations that change balances
produce :class:`TransferIntent` objects and hand them to a :class:`Custody`
implementation, which must either execute all of them or none. The state
change is committed only after the custody call returns.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from .exceptions import InsufficientFundsError, InvalidArgumentError
from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransferIntent:
    mint: str
    source: str
    destination: str
    amount: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mint": self.mint,
            "source": self.source,
            "destination": self.destination,
            "amount": self.amount,
        }


class Custody(ABC):
    """Executes transfer intents atomically."""

    @abstractmethod
    def execute(self, intents: Sequence[TransferIntent]) -> None:
        """Execute every intent or raise without executing any."""


class InMemoryCustody(Custody):
    """
    Reference custody ledger keeping ``(account, mint) -> balance``.
    """

    def __init__(self):
        self._balances: Dict[Tuple[str, str], int] = {}
        self._history: List[TransferIntent] = []

    def balance_of(self, account: str, mint: str) -> int:
        return self._balances.get((account, mint), 0)

    def mint_to(self, account: str, mint: str, amount: int) -> None:
        """Credit ``amount`` out of thin air, for funding test and genesis accounts."""
        if amount < 0:
            raise InvalidArgumentError(f"Cannot mint a negative amount: {amount}")
        key = (account, mint)
        self._balances[key] = self._balances.get(key, 0) + amount

    @property
    def history(self) -> List[TransferIntent]:
        return list(self._history)

    def execute(self, intents: Sequence[TransferIntent]) -> None:
        # Dry run over a scratch copy so a failing intent leaves balances untouched
        pending = dict(self._balances)
        for intent in intents:
            if intent.amount < 0:
                raise InvalidArgumentError(f"Negative transfer amount: {intent.amount}")
            src = (intent.source, intent.mint)
            available = pending.get(src, 0)
            if available < intent.amount:
                raise InsufficientFundsError(intent.source, intent.mint, intent.amount, available)
            pending[src] = available - intent.amount
            dst = (intent.destination, intent.mint)
            pending[dst] = pending.get(dst, 0) + intent.amount

        self._balances = pending
        self._history.extend(intents)
        for intent in intents:
            logger.debug(f"Transferred {intent.amount} of {intent.mint} from {intent.source} to {intent.destination}")
