"""
Game Session Routes
Start a game (seed id), inspect the running game, end it with a reward
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.auth.jwt_handler import get_current_account_id
from app.contract.deps import get_contract_service
from app.contract.models import GameSessionView
from app.contract.service import ContractService
from app.utils.serializers import U128

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/games", tags=["Games"])


class SeedRequest(BaseModel):
    """Deposit attached to a game start"""
    attached_deposit: U128


class EndGameRequest(BaseModel):
    account_id: str
    amount: U128
    referral: Optional[str] = None


@router.post("/seed")
async def get_seed_id(
    request: SeedRequest,
    account_id: str = Depends(get_current_account_id),
    service: ContractService = Depends(get_contract_service)
):
    """Start a game for the caller, consuming one free or paid game"""
    seed_id = await service.request_session(account_id, request.attached_deposit)
    return {"seed_id": seed_id}


@router.get("/{account_id}/ongoing", response_model=Optional[GameSessionView])
async def get_ongoing_game(
    account_id: str,
    service: ContractService = Depends(get_contract_service)
):
    """Running game of the account, or null when none or expired"""
    return await service.get_active_session(account_id)


@router.post("/end")
async def end_game(
    request: EndGameRequest,
    caller_id: str = Depends(get_current_account_id),
    service: ContractService = Depends(get_contract_service)
):
    """
    End the account's game (owner only)

    A positive amount is minted to the account in the background; the game
    ends regardless of the mint outcome.
    """
    mint_task = await service.end_session(
        caller_id,
        request.account_id,
        request.amount,
        request.referral,
    )

    return {
        "account_id": request.account_id,
        "amount": str(request.amount),
        "mint_dispatched": mint_task is not None
    }
