"""
Contract Routes
Read-only configuration snapshot
"""
from fastapi import APIRouter, Depends

from app.contract.deps import get_contract_service
from app.contract.models import ContractStateSnapshot
from app.contract.service import ContractService

router = APIRouter(prefix="/api/contract", tags=["Contract"])


@router.get("/state", response_model=ContractStateSnapshot)
async def get_contract_state(service: ContractService = Depends(get_contract_service)):
    return await service.get_state_snapshot()


@router.get("/payment-token")
async def get_payment_token(service: ContractService = Depends(get_contract_service)):
    return {"payment_token_id": await service.get_payment_token()}
