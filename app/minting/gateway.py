"""
Mint Gateway
Outbound reward mints, dispatched fire-and-forget after a session end commits
"""
import asyncio
import logging
from functools import partial
from typing import Optional, Set

import httpx
from pydantic import BaseModel

from config import MINT_ATTACHED_DEPOSIT
from app.contract.models import MintRequest

logger = logging.getLogger(__name__)

MINT_SUCCESS = "Minting successful"
MINT_FAILURE = "Minting failed"


class MintReceipt(BaseModel):
    """Mint service reply: (minted amount, token total supply)"""
    minted_amount: int
    total_supply: int


def on_mint_complete(request: MintRequest, task: "asyncio.Task") -> str:
    """
    Completion callback of a dispatched mint

    Only logs the outcome. The session end that triggered the mint is
    already committed and stays committed either way.
    """
    if task.cancelled():
        logger.error(f"{MINT_FAILURE}: mint for {request.recipient} was cancelled")
        return MINT_FAILURE

    error = task.exception()
    if error is not None:
        logger.error(f"{MINT_FAILURE}: {request.amount} to {request.recipient}: {error}")
        return MINT_FAILURE

    receipt = task.result()
    logger.info(
        f"{MINT_SUCCESS}: {receipt.minted_amount} to {request.recipient} "
        f"(total supply {receipt.total_supply})"
    )
    return MINT_SUCCESS


class MintGateway:
    """
    HTTP client of the reward mint service

    Args:
        base_url: Mint service base URL
        timeout: Fixed time budget of one mint call, in seconds
        transport: Optional httpx transport (mocked in tests)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def mint(self, mint_service_id: str, request: MintRequest) -> MintReceipt:
        """Call the mint service and parse its (minted, total_supply) reply"""
        url = f"{self.base_url}/contracts/{mint_service_id}/mint"
        payload = {
            "recipient": request.recipient,
            "amount": str(request.amount),
            "referral": request.referral,
            "attached_deposit": str(MINT_ATTACHED_DEPOSIT),
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(url, json=payload)

        response.raise_for_status()
        minted_amount, total_supply = response.json()
        return MintReceipt(minted_amount=int(minted_amount), total_supply=int(total_supply))

    def dispatch(self, mint_service_id: str, request: MintRequest) -> "asyncio.Task":
        """Start a mint without waiting for it; the outcome is only logged"""
        task = asyncio.create_task(self.mint(mint_service_id, request))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        task.add_done_callback(partial(on_mint_complete, request))
        logger.info(f"Mint dispatched: {request.amount} to {request.recipient}")
        return task

    async def wait_pending(self) -> None:
        """Let in-flight mints finish (shutdown)"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
