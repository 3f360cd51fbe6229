"""
Contract Document Migrations
Versioned upgrades of the stored contract document

Version 1 documents predate the configurable game duration and carry no
schema_version field. Each step takes the previous shape and builds the
next one field by field; per-account collections are left untouched.
"""
import logging
from typing import Callable, Dict

from config import DEFAULT_MAX_GAME_DURATION_MS

logger = logging.getLogger(__name__)

CURRENT_SCHEMA_VERSION = 2


def schema_version(document: dict) -> int:
    return int(document.get("schema_version", 1))


def _upgrade_v1_to_v2(document: dict) -> dict:
    return {
        "_id": document["_id"],
        "schema_version": 2,
        "owner_id": document["owner_id"],
        "payment_token_id": document["payment_token_id"],
        "mint_service_id": document["mint_service_id"],
        "game_costs": document["game_costs"],
        "seed_id": document["seed_id"],
        "min_deposit": document["min_deposit"],
        "max_game_duration": DEFAULT_MAX_GAME_DURATION_MS,
    }


MIGRATIONS: Dict[int, Callable[[dict], dict]] = {
    1: _upgrade_v1_to_v2,
}


def needs_migration(document: dict) -> bool:
    return schema_version(document) < CURRENT_SCHEMA_VERSION


def migrate_document(document: dict) -> dict:
    """
    Upgrade a stored contract document to the current schema

    Raises:
        ValueError: If the document is newer than this code or a step is missing
    """
    version = schema_version(document)
    if version > CURRENT_SCHEMA_VERSION:
        raise ValueError(
            f"Contract document schema v{version} is newer than supported v{CURRENT_SCHEMA_VERSION}"
        )

    while version < CURRENT_SCHEMA_VERSION:
        step = MIGRATIONS.get(version)
        if step is None:
            raise ValueError(f"No migration registered from schema v{version}")
        document = step(document)
        logger.info(f"[MIGRATE] Contract document upgraded v{version} -> v{schema_version(document)}")
        version = schema_version(document)

    return document
