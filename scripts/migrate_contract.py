"""
Migrate the stored contract document to the current schema
Uses the MongoDB cluster from config
Usage: python scripts/migrate_contract.py [--db mongodb://...] [--init]
"""
import asyncio
import argparse
import os
import sys
from motor.motor_asyncio import AsyncIOMotorClient

# Add parent directory to path so we can import config and app
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings
from app.contract.repository import ContractNotInitialized, MongoContractRepository


async def migrate_contract(db_uri: str = None, init: bool = False) -> bool:
    """
    Upgrade the contract document in place

    Args:
        db_uri: MongoDB connection URI (defaults to settings.MONGODB_URI)
        init: Create the contract with the configured identities when missing
    """
    if db_uri is None:
        db_uri = settings.MONGODB_URI

    client = AsyncIOMotorClient(
        db_uri,
        serverSelectionTimeoutMS=10000,
        connectTimeoutMS=15000,
        retryWrites=True,
    )

    try:
        repository = MongoContractRepository(client[settings.DATABASE_NAME])

        if init:
            state = await repository.bootstrap(
                owner_id=settings.CONTRACT_OWNER_ID,
                payment_token_id=settings.PAYMENT_TOKEN_ID,
                mint_service_id=settings.MINT_SERVICE_ID,
            )
            print(f"[OK] Contract ready (owner: {state.config.owner_id}, seed id: {state.seed_id})")
            return True

        from_version, to_version = await repository.migrate()
        if from_version == to_version:
            print(f"[OK] Contract already at schema v{to_version}")
        else:
            print(f"[OK] Contract migrated v{from_version} -> v{to_version}")
        return True

    except ContractNotInitialized as e:
        print(f"[ERROR] {str(e)} (use --init to create it)")
        return False

    except ValueError as e:
        print(f"[ERROR] Migration failed: {str(e)}")
        return False

    finally:
        client.close()
        print("[INFO] Database connection closed")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Migrate the game contract document to the current schema",
        epilog="Uses MONGODB_URI and DATABASE_NAME from .env"
    )
    parser.add_argument(
        '--db',
        default=None,
        help='MongoDB URI (defaults to MONGODB_URI in .env)'
    )
    parser.add_argument(
        '--init',
        action='store_true',
        help='Initialize the contract when no document exists, migrate otherwise'
    )

    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("GAME CONTRACT MIGRATION")
    print("=" * 60)
    print(f"Database: {settings.DATABASE_NAME}")
    print()

    success = asyncio.run(migrate_contract(args.db, args.init))

    sys.exit(0 if success else 1)
