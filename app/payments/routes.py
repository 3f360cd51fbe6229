"""
Payments API Routes
Deposit notifications from the payment token
"""
import logging
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.auth.jwt_handler import get_current_account_id
from app.contract.deps import get_contract_service
from app.contract.service import ContractService
from app.utils.serializers import U128

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/payments", tags=["Payments"])


class TokenTransferNotification(BaseModel):
    """Transfer reported by the payment token: `amount` sent by `sender_id`"""
    sender_id: str
    amount: U128
    msg: str = ""


@router.post("/ft-on-transfer")
async def ft_on_transfer(
    notification: TokenTransferNotification,
    caller_id: str = Depends(get_current_account_id),
    service: ContractService = Depends(get_contract_service)
):
    """
    Convert a token deposit into paid games

    The caller must be the configured payment token. The response carries
    the unspent remainder, which the token refunds to the sender.
    """
    logger.info(f"Deposit notification from {caller_id}: {notification.amount} by {notification.sender_id}")

    remainder = await service.on_token_transfer(
        caller_id,
        notification.sender_id,
        notification.amount,
        notification.msg,
    )

    return {"refund": str(remainder)}
