"""
Admin API
Owner-only contract configuration; the contract rejects any other caller
"""
import logging
from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field

from app.auth.jwt_handler import get_current_account_id
from app.contract.deps import get_contract_service
from app.contract.service import ContractService
from app.utils.serializers import U128

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["Admin"])


class GameCostUpdate(BaseModel):
    price: U128


class AccountUpdate(BaseModel):
    account_id: str = Field(..., min_length=1)


class GameDurationUpdate(BaseModel):
    game_duration_seconds: int = Field(..., gt=0)


class FreeGameGrant(BaseModel):
    amount: int = Field(default=1, ge=0)


@router.put("/pricing/{bundle_size}")
async def insert_game_cost(
    update: GameCostUpdate,
    bundle_size: int = Path(..., ge=0),
    owner_id: str = Depends(get_current_account_id),
    service: ContractService = Depends(get_contract_service)
):
    """Add or update the per-game price of a bundle tier"""
    await service.set_price(owner_id, bundle_size, update.price)
    logger.info(f"Admin {owner_id} set price of bundle {bundle_size}")
    return {"bundle_size": bundle_size, "price": str(update.price)}


@router.delete("/pricing/{bundle_size}")
async def remove_game_cost(
    bundle_size: int,
    owner_id: str = Depends(get_current_account_id),
    service: ContractService = Depends(get_contract_service)
):
    await service.remove_price(owner_id, bundle_size)
    logger.info(f"Admin {owner_id} removed bundle {bundle_size}")
    return {"removed": bundle_size}


@router.put("/payment-token")
async def set_payment_token(
    update: AccountUpdate,
    owner_id: str = Depends(get_current_account_id),
    service: ContractService = Depends(get_contract_service)
):
    await service.set_payment_token(owner_id, update.account_id)
    return {"payment_token_id": update.account_id}


@router.put("/mint-service")
async def set_mint_service(
    update: AccountUpdate,
    owner_id: str = Depends(get_current_account_id),
    service: ContractService = Depends(get_contract_service)
):
    await service.set_mint_service(owner_id, update.account_id)
    return {"mint_service_id": update.account_id}


@router.put("/max-game-duration")
async def set_max_game_duration(
    update: GameDurationUpdate,
    owner_id: str = Depends(get_current_account_id),
    service: ContractService = Depends(get_contract_service)
):
    """Game duration is given in seconds and stored in milliseconds"""
    await service.set_max_game_duration(owner_id, update.game_duration_seconds)
    return {"max_game_duration": update.game_duration_seconds * 1000}


@router.post("/free-games/{account_id}")
async def give_free_games(
    account_id: str,
    grant: FreeGameGrant = FreeGameGrant(),
    owner_id: str = Depends(get_current_account_id),
    service: ContractService = Depends(get_contract_service)
):
    """Grant free games for today (one by default)"""
    free = await service.grant_free_games(owner_id, account_id, grant.amount)
    return {"account_id": account_id, "free": free}
