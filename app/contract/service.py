"""
Contract Service
Entry points of the game contract

Every call runs under one lock and follows load -> check caller -> operate
-> commit. A ContractError raised before the commit leaves the store
untouched. Reward mints are dispatched only after the commit.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Tuple

from config import MAX_TOKEN_AMOUNT
from app.contract.clock import SystemClock
from app.contract.errors import InvalidArgument, UnauthorizedCaller
from app.contract.ledger import CreditLedger
from app.contract.models import ContractState, ContractStateSnapshot, GameSessionView
from app.contract.payments import PaymentConverter
from app.contract.pricing import PricingTable
from app.contract.repository import MongoContractRepository
from app.contract.sessions import SessionManager
from app.minting.gateway import MintGateway
from app.utils.serializers import serialize_game_costs

logger = logging.getLogger(__name__)


def _check_amount(amount: int, what: str) -> None:
    if not 0 <= amount <= MAX_TOKEN_AMOUNT:
        raise InvalidArgument(f"{what} must fit in an unsigned 128-bit amount")


class ContractService:
    def __init__(
        self,
        repository: MongoContractRepository,
        mint_gateway: MintGateway,
        clock=None,
        start_policy: str = "forfeit",
    ):
        self.repository = repository
        self.mint_gateway = mint_gateway
        self.clock = clock or SystemClock()
        self.start_policy = start_policy
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def _call(self, *accounts: str, commit: bool = True) -> AsyncIterator[ContractState]:
        """Serialized contract call over the state of `accounts`"""
        async with self._lock:
            state = await self.repository.load(accounts)
            yield state
            if commit:
                await self.repository.save(state)

    def _sessions(self, state: ContractState) -> SessionManager:
        return SessionManager(state, CreditLedger(state), self.start_policy)

    @staticmethod
    def _assert_owner(state: ContractState, caller_id: str) -> None:
        if caller_id != state.config.owner_id:
            logger.warning(f"Owner-only call rejected for {caller_id}")
            raise UnauthorizedCaller("Only the owner can call this function.")

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def on_token_transfer(self, caller_id: str, sender_id: str, amount: int, msg: str = "") -> int:
        """
        Deposit notification from the payment token

        Returns the amount to refund to the sender.
        """
        _check_amount(amount, "Deposit")
        async with self._call(sender_id) as state:
            token_id = state.config.payment_token_id
            if caller_id != token_id:
                raise UnauthorizedCaller(f"Only {token_id} is accepted")

            ledger = CreditLedger(state)
            remainder = PaymentConverter(PricingTable(state), ledger).convert(sender_id, amount)

        logger.info(f"Deposit of {amount} from {sender_id} processed (msg={msg!r})")
        return remainder

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def request_session(self, caller_id: str, attached_deposit: int) -> int:
        """Start a game for the caller; returns the new seed id"""
        _check_amount(attached_deposit, "Deposit")
        async with self._call(caller_id) as state:
            seed_id = self._sessions(state).request_session(
                caller_id, self.clock.now_ms(), attached_deposit
            )
        return seed_id

    async def end_session(
        self,
        caller_id: str,
        account_id: str,
        amount: int,
        referral: Optional[str] = None,
    ) -> Optional[asyncio.Task]:
        """
        Owner ends the account's game, minting `amount` when positive

        Returns the dispatched mint task, or None when nothing is minted.
        """
        _check_amount(amount, "Reward")
        async with self._call(account_id) as state:
            self._assert_owner(state, caller_id)
            mint_request = self._sessions(state).end_session(
                account_id, self.clock.now_ms(), amount, referral
            )
            mint_service_id = state.config.mint_service_id

        if mint_request is None:
            return None
        return self.mint_gateway.dispatch(mint_service_id, mint_request)

    async def get_active_session(self, account_id: str) -> Optional[GameSessionView]:
        async with self._call(account_id, commit=False) as state:
            game = self._sessions(state).get_active_session(account_id, self.clock.now_ms())
        if game is None:
            return None
        return GameSessionView(seed_id=game.seed_id, start_time=game.start_time)

    # ------------------------------------------------------------------
    # Credits
    # ------------------------------------------------------------------

    async def remaining_free(self, account_id: str) -> int:
        async with self._call(account_id, commit=False) as state:
            return CreditLedger(state).remaining_free(account_id, self.clock.now_ms())

    async def remaining_paid(self, account_id: str) -> int:
        async with self._call(account_id, commit=False) as state:
            return CreditLedger(state).remaining_paid(account_id)

    async def remaining(self, account_id: str) -> Tuple[int, int]:
        async with self._call(account_id, commit=False) as state:
            return CreditLedger(state).remaining(account_id, self.clock.now_ms())

    async def grant_free_games(self, caller_id: str, account_id: str, amount: int = 1) -> int:
        async with self._call(account_id) as state:
            self._assert_owner(state, caller_id)
            total = CreditLedger(state).grant_free(account_id, self.clock.now_ms(), amount)
        return total

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    async def list_prices(self) -> List[Tuple[int, int]]:
        async with self._call(commit=False) as state:
            return PricingTable(state).list()

    async def set_price(self, caller_id: str, bundle_size: int, price: int) -> None:
        async with self._call() as state:
            self._assert_owner(state, caller_id)
            PricingTable(state).set_price(bundle_size, price)

    async def remove_price(self, caller_id: str, bundle_size: int) -> None:
        async with self._call() as state:
            self._assert_owner(state, caller_id)
            PricingTable(state).remove_price(bundle_size)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    async def get_payment_token(self) -> str:
        async with self._call(commit=False) as state:
            return state.config.payment_token_id

    async def set_payment_token(self, caller_id: str, payment_token_id: str) -> None:
        async with self._call() as state:
            self._assert_owner(state, caller_id)
            state.config.payment_token_id = payment_token_id
        logger.info(f"Payment token set to {payment_token_id}")

    async def set_mint_service(self, caller_id: str, mint_service_id: str) -> None:
        async with self._call() as state:
            self._assert_owner(state, caller_id)
            state.config.mint_service_id = mint_service_id
        logger.info(f"Mint service set to {mint_service_id}")

    async def set_max_game_duration(self, caller_id: str, seconds: int) -> None:
        if seconds <= 0:
            raise InvalidArgument("Game duration must be positive")
        async with self._call() as state:
            self._assert_owner(state, caller_id)
            state.config.max_game_duration = seconds * 1000
        logger.info(f"Max game duration set to {seconds}s")

    async def get_state_snapshot(self) -> ContractStateSnapshot:
        async with self._call(commit=False) as state:
            config = state.config
            return ContractStateSnapshot(
                owner_id=config.owner_id,
                payment_token_id=config.payment_token_id,
                mint_service_id=config.mint_service_id,
                game_costs=serialize_game_costs(PricingTable(state).list()),
                seed_id=state.seed_id,
                min_deposit=str(config.min_deposit),
                max_game_duration=config.max_game_duration,
            )
