"""
Test helpers: an in-memory stand-in for the Motor database, a fixed clock
and builders for a ready contract service.
"""
import copy
from typing import Any, Dict, List, Optional

import httpx

from config import DAY_MS
from app.auth.jwt_handler import create_access_token
from app.contract.models import ContractState
from app.contract.repository import MongoContractRepository, state_to_document
from app.contract.service import ContractService
from app.minting.gateway import MintGateway

OWNER = "owner.near"
TOKEN = "token.cheddar.near"
MINTER = "minter.near"
MINT_URL = "http://mint.local"

# Contract tests start on day 1, like a chain whose clock sits at DAY_MS
START_MS = DAY_MS
MIN_DEPOSIT = 10 ** 21


class DummyCollection:
    """
    Minimal Motor collection: equality filters on top-level fields only
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.documents: List[Dict[str, Any]] = []
        self.indexes: List[Any] = []

    @staticmethod
    def _matches(document: dict, query: dict) -> bool:
        return all(document.get(key) == value for key, value in query.items())

    async def find_one(self, query: dict) -> Optional[dict]:
        for document in self.documents:
            if self._matches(document, query):
                return copy.deepcopy(document)
        return None

    async def replace_one(self, query: dict, replacement: dict, upsert: bool = False):
        for index, document in enumerate(self.documents):
            if self._matches(document, query):
                self.documents[index] = copy.deepcopy(replacement)
                return
        if upsert:
            self.insert(replacement)

    async def delete_one(self, query: dict):
        for index, document in enumerate(self.documents):
            if self._matches(document, query):
                del self.documents[index]
                return

    async def count_documents(self, query: dict) -> int:
        return sum(1 for document in self.documents if self._matches(document, query))

    async def create_index(self, keys, **kwargs):
        self.indexes.append((keys, kwargs))

    def insert(self, document: dict) -> None:
        self.documents.append(copy.deepcopy(document))


class DummyDatabase:
    """Attribute/item access creates collections on demand, like Motor"""

    def __init__(self) -> None:
        self._collections: Dict[str, DummyCollection] = {}

    def __getattr__(self, name: str) -> DummyCollection:
        if name.startswith("_"):
            raise AttributeError(name)
        return self[name]

    def __getitem__(self, name: str) -> DummyCollection:
        if name not in self._collections:
            self._collections[name] = DummyCollection(name)
        return self._collections[name]

    def dump(self) -> Dict[str, List[dict]]:
        """Snapshot of every non-empty collection"""
        return {
            name: copy.deepcopy(c.documents)
            for name, c in self._collections.items()
            if c.documents
        }


class FixedClock:
    def __init__(self, now_ms: int = START_MS) -> None:
        self._now_ms = now_ms

    def now_ms(self) -> int:
        return self._now_ms

    def set(self, now_ms: int) -> None:
        self._now_ms = now_ms

    def advance(self, delta_ms: int) -> None:
        self._now_ms += delta_ms


def mint_ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=["1", "1"])


def seed_contract(db: DummyDatabase) -> ContractState:
    """Write a freshly initialized contract document without an event loop"""
    state = ContractState.initial(OWNER, TOKEN, MINTER)
    db.contract_state.insert(state_to_document(state))
    return state


def make_service(
    db: Optional[DummyDatabase] = None,
    clock: Optional[FixedClock] = None,
    start_policy: str = "forfeit",
    mint_handler=mint_ok_handler,
) -> ContractService:
    """Contract service over a seeded in-memory database"""
    if db is None:
        db = DummyDatabase()
        seed_contract(db)

    gateway = MintGateway(MINT_URL, timeout=5.0, transport=httpx.MockTransport(mint_handler))
    return ContractService(
        MongoContractRepository(db),
        gateway,
        clock=clock or FixedClock(),
        start_policy=start_policy,
    )


def auth_headers(account_id: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(account_id)}"}
