"""
Pricing Routes - Public endpoint for the game bundle prices
"""
from fastapi import APIRouter, Depends

from app.contract.deps import get_contract_service
from app.contract.service import ContractService
from app.utils.serializers import serialize_game_costs

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


@router.get("")
async def get_game_costs(service: ContractService = Depends(get_contract_service)):
    """
    Bundle tiers in storage order

    Each entry is [bundle_size, per_game_price] as decimal strings.
    """
    return serialize_game_costs(await service.list_prices())
