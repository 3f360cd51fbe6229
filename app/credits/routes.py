"""
Credits Routes
Remaining free and paid games per account
"""
import logging
from fastapi import APIRouter, Depends

from app.contract.deps import get_contract_service
from app.contract.service import ContractService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/credits", tags=["Credits"])


@router.get("/{account_id}")
async def get_remaining_games(
    account_id: str,
    service: ContractService = Depends(get_contract_service)
):
    """Free games left today and paid games left"""
    free, paid = await service.remaining(account_id)
    return {
        "account_id": account_id,
        "free": free,
        "paid": paid
    }


@router.get("/{account_id}/free")
async def get_remaining_free_games(
    account_id: str,
    service: ContractService = Depends(get_contract_service)
):
    return {"account_id": account_id, "free": await service.remaining_free(account_id)}


@router.get("/{account_id}/paid")
async def get_remaining_paid_games(
    account_id: str,
    service: ContractService = Depends(get_contract_service)
):
    return {"account_id": account_id, "paid": await service.remaining_paid(account_id)}
