"""
Contract Repository
Loads the contract aggregate from MongoDB and commits it back

Layout:
    contract_state  one document, _id "contract" (configuration, pricing, seed counter)
    free_games      {account_id, day, amount}
    paid_games      {account_id, amount}
    ongoing_games   {account_id, seed_id, start_time, is_ending_game}

u128 quantities are stored as decimal strings (BSON integers stop at 64 bits).
"""
import logging
from typing import Iterable, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.contract.migrations import (
    CURRENT_SCHEMA_VERSION,
    migrate_document,
    needs_migration,
    schema_version,
)
from app.contract.models import (
    ContractConfig,
    ContractState,
    FreeGameInfo,
    GameCost,
    GameSession,
)

logger = logging.getLogger(__name__)

CONTRACT_ID = "contract"


def state_to_document(state: ContractState) -> dict:
    """Contract document for the global part of the state"""
    config = state.config
    return {
        "_id": CONTRACT_ID,
        "schema_version": CURRENT_SCHEMA_VERSION,
        "owner_id": config.owner_id,
        "payment_token_id": config.payment_token_id,
        "mint_service_id": config.mint_service_id,
        "game_costs": [[cost.bundle_size, str(cost.price)] for cost in state.game_costs],
        "seed_id": state.seed_id,
        "min_deposit": str(config.min_deposit),
        "max_game_duration": config.max_game_duration,
    }


def document_to_state(document: dict) -> ContractState:
    """Aggregate with the global part filled in and no accounts loaded"""
    return ContractState(
        config=ContractConfig(
            owner_id=document["owner_id"],
            payment_token_id=document["payment_token_id"],
            mint_service_id=document["mint_service_id"],
            min_deposit=int(document["min_deposit"]),
            max_game_duration=int(document["max_game_duration"]),
        ),
        game_costs=[
            GameCost(bundle_size=int(size), price=int(price))
            for size, price in document["game_costs"]
        ],
        seed_id=int(document["seed_id"]),
    )


class ContractNotInitialized(RuntimeError):
    pass


class MongoContractRepository:
    """Persists the contract aggregate in MongoDB collections"""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def bootstrap(self, owner_id: str, payment_token_id: str, mint_service_id: str) -> ContractState:
        """
        Initialize the contract document on first start, migrate it otherwise

        The identities are only used when no contract document exists yet.
        """
        document = await self.db.contract_state.find_one({"_id": CONTRACT_ID})

        if document is None:
            state = ContractState.initial(owner_id, payment_token_id, mint_service_id)
            await self.db.contract_state.replace_one(
                {"_id": CONTRACT_ID}, state_to_document(state), upsert=True
            )
            logger.info(f"[OK] Contract initialized (owner: {owner_id})")
            return state

        if needs_migration(document):
            await self.migrate()
            document = await self.db.contract_state.find_one({"_id": CONTRACT_ID})

        logger.info(f"[OK] Contract state loaded (schema v{schema_version(document)})")
        return document_to_state(document)

    async def migrate(self) -> Tuple[int, int]:
        """Rewrite the stored contract document in the current schema"""
        document = await self.db.contract_state.find_one({"_id": CONTRACT_ID})
        if document is None:
            raise ContractNotInitialized("No contract document to migrate")

        from_version = schema_version(document)
        migrated = migrate_document(document)
        if migrated is not document:
            await self.db.contract_state.replace_one({"_id": CONTRACT_ID}, migrated)
        return from_version, schema_version(migrated)

    async def load(self, accounts: Iterable[str] = ()) -> ContractState:
        """Aggregate with the per-account records of `accounts`"""
        document = await self.db.contract_state.find_one({"_id": CONTRACT_ID})
        if document is None:
            raise ContractNotInitialized("Contract has not been initialized")
        if needs_migration(document):
            raise ContractNotInitialized(
                f"Contract document is at schema v{schema_version(document)}; run the migration"
            )

        state = document_to_state(document)

        for account_id in set(accounts):
            state.loaded_accounts.add(account_id)

            free = await self.db.free_games.find_one({"account_id": account_id})
            if free:
                state.free_games[account_id] = FreeGameInfo(day=free["day"], amount=free["amount"])

            paid = await self.db.paid_games.find_one({"account_id": account_id})
            if paid:
                state.paid_games[account_id] = paid["amount"]

            game = await self.db.ongoing_games.find_one({"account_id": account_id})
            if game:
                state.ongoing_games[account_id] = GameSession(
                    seed_id=game["seed_id"],
                    start_time=game["start_time"],
                    is_ending_game=game.get("is_ending_game", False),
                )

        return state

    async def save(self, state: ContractState) -> None:
        """
        Commit every loaded account, then the global document

        The writes are not one transaction. The contract document goes last,
        so an interrupted commit never advances the seed counter or the
        configuration past account records that were not written.
        """
        for account_id in state.loaded_accounts:
            key = {"account_id": account_id}

            game = state.ongoing_games.get(account_id)
            if game is None:
                await self.db.ongoing_games.delete_one(key)
            else:
                await self.db.ongoing_games.replace_one(
                    key,
                    {
                        "account_id": account_id,
                        "seed_id": game.seed_id,
                        "start_time": game.start_time,
                        "is_ending_game": game.is_ending_game,
                    },
                    upsert=True,
                )

            free = state.free_games.get(account_id)
            if free is None:
                await self.db.free_games.delete_one(key)
            else:
                await self.db.free_games.replace_one(
                    key, {"account_id": account_id, "day": free.day, "amount": free.amount}, upsert=True
                )

            paid = state.paid_games.get(account_id)
            if paid is None:
                await self.db.paid_games.delete_one(key)
            else:
                await self.db.paid_games.replace_one(
                    key, {"account_id": account_id, "amount": paid}, upsert=True
                )

        await self.db.contract_state.replace_one(
            {"_id": CONTRACT_ID}, state_to_document(state), upsert=True
        )
