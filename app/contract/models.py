"""
Contract State Models
The aggregate every contract operation runs against, plus its JSON views
"""
from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Set

from config import DEFAULT_MIN_DEPOSIT, DEFAULT_MAX_GAME_DURATION_MS, DEFAULT_GAME_COSTS


class FreeGameInfo(BaseModel):
    """Free games left for an account; only valid on the stored day"""
    day: int = 0
    amount: int = 0


class GameSession(BaseModel):
    """An account's running game"""
    seed_id: int
    start_time: int  # ms since epoch
    is_ending_game: bool = False


class GameCost(BaseModel):
    """Per-game price when buying `bundle_size` games at once"""
    bundle_size: int
    price: int


class ContractConfig(BaseModel):
    """Owner-mutable contract configuration"""
    owner_id: str
    payment_token_id: str
    mint_service_id: str
    min_deposit: int = DEFAULT_MIN_DEPOSIT
    max_game_duration: int = DEFAULT_MAX_GAME_DURATION_MS  # ms


class MintRequest(BaseModel):
    """Reward mint to dispatch once the session end is committed"""
    recipient: str
    amount: int
    referral: Optional[str] = None


class ContractState(BaseModel):
    """
    Contract aggregate for one call

    Holds the configuration, the pricing table and the global seed counter,
    plus the per-account records of `loaded_accounts` only. The repository
    persists exactly those accounts back, so a record missing from a map is
    deleted on save.
    """
    config: ContractConfig
    game_costs: List[GameCost] = Field(default_factory=list)
    seed_id: int = 0
    free_games: Dict[str, FreeGameInfo] = Field(default_factory=dict)
    paid_games: Dict[str, int] = Field(default_factory=dict)
    ongoing_games: Dict[str, GameSession] = Field(default_factory=dict)
    loaded_accounts: Set[str] = Field(default_factory=set)

    @classmethod
    def initial(cls, owner_id: str, payment_token_id: str, mint_service_id: str) -> "ContractState":
        """State of a freshly initialized contract"""
        return cls(
            config=ContractConfig(
                owner_id=owner_id,
                payment_token_id=payment_token_id,
                mint_service_id=mint_service_id,
            ),
            game_costs=[GameCost(bundle_size=size, price=price) for size, price in DEFAULT_GAME_COSTS],
        )


class GameSessionView(BaseModel):
    """Public view of a running game"""
    seed_id: int
    start_time: int


class ContractStateSnapshot(BaseModel):
    """Full configuration snapshot; u128 values as decimal strings"""
    owner_id: str
    payment_token_id: str
    mint_service_id: str
    game_costs: List[List[str]]
    seed_id: int
    min_deposit: str
    max_game_duration: int
