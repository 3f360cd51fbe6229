"""
Session Manager
One running game per account: start, expiry masking and end
"""
import logging
from typing import Optional

from config import SESSION_START_POLICIES
from app.contract.errors import (
    ClockInconsistency,
    InsufficientCredit,
    InsufficientDeposit,
    InvalidArgument,
    NoActiveSession,
    SessionAlreadyActive,
)
from app.contract.ledger import CreditLedger
from app.contract.models import ContractState, GameSession, MintRequest

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Game session state machine

    Args:
        state: Contract aggregate for the current call
        ledger: Credit ledger over the same state
        start_policy: What a start does while a game is still running.
            "forfeit" ends the running game with no reward, "strict"
            rejects the start with SessionAlreadyActive.
    """

    def __init__(self, state: ContractState, ledger: CreditLedger, start_policy: str = "forfeit"):
        if start_policy not in SESSION_START_POLICIES:
            raise ValueError(f"Unknown session start policy: {start_policy}")
        self.state = state
        self.ledger = ledger
        self.start_policy = start_policy

    def get_active_session(self, account_id: str, now_ms: int) -> Optional[GameSession]:
        """Running game of the account; expired games read as None but stay stored"""
        game = self.state.ongoing_games.get(account_id)
        if game is None:
            return None

        if now_ms < game.start_time:
            raise ClockInconsistency(
                "Start time is in the future", start_time=game.start_time, now=now_ms
            )
        if now_ms - game.start_time >= self.state.config.max_game_duration:
            return None
        return game

    def request_session(self, account_id: str, now_ms: int, attached_deposit: int) -> int:
        """Start a game for the account and return its seed id"""
        min_deposit = self.state.config.min_deposit
        if attached_deposit < min_deposit:
            raise InsufficientDeposit(f"Deposit must be at least {min_deposit}")

        if self.get_active_session(account_id, now_ms) is not None:
            if self.start_policy == "strict":
                raise SessionAlreadyActive(f"{account_id} already has an ongoing game")
            logger.info(f"User {account_id} has ongoing game. Losing it")
            self.end_session(account_id, now_ms, 0)

        free, paid = self.ledger.remaining(account_id, now_ms)
        if free + paid == 0:
            raise InsufficientCredit("No games remaining for the user")

        self.ledger.consume_one(account_id, now_ms)
        self.state.seed_id += 1
        self.state.ongoing_games[account_id] = GameSession(
            seed_id=self.state.seed_id,
            start_time=now_ms,
            is_ending_game=False,
        )
        logger.info(f"Started game {self.state.seed_id} for {account_id}")
        return self.state.seed_id

    def end_session(
        self,
        account_id: str,
        now_ms: int,
        amount: int,
        referral: Optional[str] = None,
    ) -> Optional[MintRequest]:
        """
        End the running game of the account

        Returns the reward mint to dispatch after commit, or None when the
        amount is zero (a lost game).
        """
        if amount < 0:
            raise InvalidArgument("Reward amount must not be negative")

        if self.get_active_session(account_id, now_ms) is None:
            raise NoActiveSession("No ongoing game for the user")

        del self.state.ongoing_games[account_id]

        if amount > 0:
            logger.info(f"Game of {account_id} ended with reward {amount}")
            return MintRequest(recipient=account_id, amount=amount, referral=referral)

        logger.info(f"Game of {account_id} ended without reward")
        return None
