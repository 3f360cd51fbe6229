"""
FastAPI dependency for the contract service built at startup
"""
from fastapi import HTTPException, Request

from app.contract.service import ContractService


def get_contract_service(request: Request) -> ContractService:
    service = getattr(request.app.state, "contract_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Contract service not ready")
    return service
