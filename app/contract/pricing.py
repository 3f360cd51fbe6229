"""
Pricing Table
Owner-managed bundle tiers, at most four, kept in storage order
"""
import logging
from typing import List, Optional, Tuple

from config import MAX_GAME_COSTS, MAX_BUNDLE_SIZE, MAX_TOKEN_AMOUNT
from app.contract.errors import CapacityExceeded, InvalidArgument, NotFound
from app.contract.models import ContractState, GameCost

logger = logging.getLogger(__name__)


class PricingTable:
    """
    Bundle size -> per-game price

    Storage order matters: the payment converter scans tiers in this order.
    New sizes are appended, updates keep their slot and removals move the
    last entry into the freed slot.
    """

    def __init__(self, state: ContractState):
        self.state = state

    def _index_of(self, bundle_size: int) -> Optional[int]:
        for index, cost in enumerate(self.state.game_costs):
            if cost.bundle_size == bundle_size:
                return index
        return None

    def set_price(self, bundle_size: int, price: int) -> None:
        if not 0 < bundle_size <= MAX_BUNDLE_SIZE:
            raise InvalidArgument(f"Key must be greater than 0 and at most {MAX_BUNDLE_SIZE}")
        if not 0 < price <= MAX_TOKEN_AMOUNT:
            raise InvalidArgument("Price must be positive and fit in an unsigned 128-bit amount")

        index = self._index_of(bundle_size)
        if index is not None:
            self.state.game_costs[index] = GameCost(bundle_size=bundle_size, price=price)
            logger.info(f"Updated game cost for bundle {bundle_size}: {price}")
            return

        if len(self.state.game_costs) >= MAX_GAME_COSTS:
            raise CapacityExceeded(f"Cannot have more than {MAX_GAME_COSTS} game costs")

        self.state.game_costs.append(GameCost(bundle_size=bundle_size, price=price))
        logger.info(f"Added game cost for bundle {bundle_size}: {price}")

    def remove_price(self, bundle_size: int) -> None:
        index = self._index_of(bundle_size)
        if index is None:
            raise NotFound(f"Key {bundle_size} does not exist")

        costs = self.state.game_costs
        last = costs.pop()
        if index < len(costs):
            costs[index] = last
        logger.info(f"Removed game cost for bundle {bundle_size}")

    def price_for(self, bundle_size: int) -> int:
        index = self._index_of(bundle_size)
        if index is None:
            raise NotFound(f"Game cost not found for bundle {bundle_size}")
        return self.state.game_costs[index].price

    def list(self) -> List[Tuple[int, int]]:
        return [(cost.bundle_size, cost.price) for cost in self.state.game_costs]
