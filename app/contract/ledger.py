"""
Credit Ledger
Free and paid game balances, daily free-game reset and consumption order
"""
import logging
from typing import Tuple

from config import DEFAULT_FREE_GAMES, MAX_GAME_AMOUNT
from app.contract.clock import day_index
from app.contract.errors import InsufficientCredit, InvalidArgument, QuantityOverflow
from app.contract.models import ContractState, FreeGameInfo

logger = logging.getLogger(__name__)


def effective_free(stored_day: int, stored_amount: int, current_day: int) -> int:
    """
    Free games actually available today

    The stored amount only counts on the day it was written; any other day
    reads as the default daily grant.
    """
    if stored_day == current_day:
        return stored_amount
    return DEFAULT_FREE_GAMES


class CreditLedger:
    """Per-account free/paid game balances held in the contract state"""

    def __init__(self, state: ContractState):
        self.state = state

    def remaining_free(self, account_id: str, now_ms: int) -> int:
        info = self.state.free_games.get(account_id, FreeGameInfo())
        return effective_free(info.day, info.amount, day_index(now_ms))

    def remaining_paid(self, account_id: str) -> int:
        return self.state.paid_games.get(account_id, 0)

    def remaining(self, account_id: str, now_ms: int) -> Tuple[int, int]:
        """(free, paid) games left for the account"""
        return self.remaining_free(account_id, now_ms), self.remaining_paid(account_id)

    def grant_free(self, account_id: str, now_ms: int, delta: int = 1) -> int:
        """Add free games for today on top of the effective balance"""
        if delta < 0:
            raise InvalidArgument("Granted free games must not be negative")

        amount = self.remaining_free(account_id, now_ms) + delta
        if amount > MAX_GAME_AMOUNT:
            raise QuantityOverflow(f"Too many free games. Limit is {MAX_GAME_AMOUNT}")

        self.state.free_games[account_id] = FreeGameInfo(day=day_index(now_ms), amount=amount)
        logger.info(f"Granted {delta} free games to {account_id} (now {amount})")
        return amount

    def add_paid(self, account_id: str, delta: int) -> int:
        if delta < 0:
            raise InvalidArgument("Paid games to add must not be negative")

        amount = self.remaining_paid(account_id) + delta
        if amount > MAX_GAME_AMOUNT:
            raise QuantityOverflow(f"Too many games bought. Limit is {MAX_GAME_AMOUNT}")

        self.state.paid_games[account_id] = amount
        return amount

    def consume_one(self, account_id: str, now_ms: int) -> str:
        """
        Spend one game, free before paid

        Returns "free" or "paid" depending on the balance used. The free
        balance is rewritten with today's day so the decrement survives the
        lazy reset for the rest of the day.
        """
        free, paid = self.remaining(account_id, now_ms)

        if free > 0:
            logger.info(f"Decreasing free game for {account_id}")
            self.state.free_games[account_id] = FreeGameInfo(day=day_index(now_ms), amount=free - 1)
            return "free"

        if paid > 0:
            logger.info(f"Decreasing paid game for {account_id}")
            self.state.paid_games[account_id] = paid - 1
            return "paid"

        raise InsufficientCredit("No games remaining for the user")
