import logging

import httpx
import pytest

from config import DAY_MS, DEFAULT_FREE_GAMES, DEFAULT_MAX_GAME_DURATION_MS, to_token_units
from app.contract.errors import (
    InsufficientCredit,
    InsufficientDeposit,
    InvalidArgument,
    NoActiveSession,
    SessionAlreadyActive,
    UnauthorizedCaller,
)
from app.minting.gateway import MINT_FAILURE, MINT_SUCCESS

from tests.utils import (
    MIN_DEPOSIT,
    OWNER,
    TOKEN,
    DummyDatabase,
    FixedClock,
    make_service,
    seed_contract,
)


def make_db():
    db = DummyDatabase()
    seed_contract(db)
    return db


@pytest.mark.asyncio
async def test_token_deposit_buys_games():
    db = make_db()
    service = make_service(db)

    refund = await service.on_token_transfer(TOKEN, "alice.near", to_token_units(15) + 7)

    assert refund == 7
    assert await service.remaining_paid("alice.near") == 1
    stored = await db.paid_games.find_one({"account_id": "alice.near"})
    assert stored["amount"] == 1


@pytest.mark.asyncio
async def test_deposit_from_other_token_rejected():
    db = make_db()
    service = make_service(db)

    with pytest.raises(UnauthorizedCaller, match=f"Only {TOKEN} is accepted"):
        await service.on_token_transfer("fake-token.near", "alice.near", to_token_units(15))
    assert db.paid_games.documents == []


@pytest.mark.asyncio
async def test_changed_payment_token_is_enforced():
    service = make_service()
    await service.set_payment_token(OWNER, "usdc.near")

    assert await service.get_payment_token() == "usdc.near"
    with pytest.raises(UnauthorizedCaller):
        await service.on_token_transfer(TOKEN, "alice.near", to_token_units(15))
    await service.on_token_transfer("usdc.near", "alice.near", to_token_units(15))
    assert await service.remaining_paid("alice.near") == 1


@pytest.mark.asyncio
async def test_start_game_is_persisted():
    db = make_db()
    service = make_service(db)

    assert await service.request_session("alice.near", MIN_DEPOSIT) == 1

    game = await db.ongoing_games.find_one({"account_id": "alice.near"})
    assert game["seed_id"] == 1
    contract = await db.contract_state.find_one({"_id": "contract"})
    assert contract["seed_id"] == 1
    assert await service.remaining("alice.near") == (DEFAULT_FREE_GAMES - 1, 0)


@pytest.mark.asyncio
async def test_failed_start_keeps_running_game():
    db = make_db()
    service = make_service(db)

    for _ in range(DEFAULT_FREE_GAMES):
        seed_id = await service.request_session("alice.near", MIN_DEPOSIT)
    before = db.dump()

    # Forfeiting happens in memory, then the credit check aborts the call
    with pytest.raises(InsufficientCredit):
        await service.request_session("alice.near", MIN_DEPOSIT)

    assert db.dump() == before
    game = await service.get_active_session("alice.near")
    assert game.seed_id == seed_id


@pytest.mark.asyncio
async def test_low_deposit_rejected():
    db = make_db()
    service = make_service(db)
    before = db.dump()

    with pytest.raises(InsufficientDeposit):
        await service.request_session("alice.near", MIN_DEPOSIT - 1)
    assert db.dump() == before


@pytest.mark.asyncio
async def test_strict_policy():
    service = make_service(start_policy="strict")
    await service.request_session("alice.near", MIN_DEPOSIT)

    with pytest.raises(SessionAlreadyActive):
        await service.request_session("alice.near", MIN_DEPOSIT)
    assert await service.remaining_free("alice.near") == DEFAULT_FREE_GAMES - 1


@pytest.mark.asyncio
async def test_free_games_reset_on_new_day():
    clock = FixedClock()
    service = make_service(clock=clock)
    await service.request_session("alice.near", MIN_DEPOSIT)

    clock.advance(DAY_MS)

    assert await service.remaining_free("alice.near") == DEFAULT_FREE_GAMES


@pytest.mark.asyncio
async def test_expired_game_cannot_be_ended():
    clock = FixedClock()
    service = make_service(clock=clock)
    await service.request_session("alice.near", MIN_DEPOSIT)

    clock.advance(DEFAULT_MAX_GAME_DURATION_MS)

    assert await service.get_active_session("alice.near") is None
    with pytest.raises(NoActiveSession):
        await service.end_session(OWNER, "alice.near", 10)


@pytest.mark.asyncio
async def test_end_without_game_changes_nothing():
    db = make_db()
    service = make_service(db)
    await service.on_token_transfer(TOKEN, "alice.near", to_token_units(15))
    before = db.dump()

    with pytest.raises(NoActiveSession):
        await service.end_session(OWNER, "alice.near", 10)

    assert db.dump() == before
    assert await service.remaining("alice.near") == (DEFAULT_FREE_GAMES, 1)


@pytest.mark.asyncio
async def test_end_expired_game_changes_nothing():
    db = make_db()
    clock = FixedClock()
    service = make_service(db, clock=clock)
    await service.on_token_transfer(TOKEN, "alice.near", to_token_units(15))
    await service.request_session("alice.near", MIN_DEPOSIT)
    clock.advance(DEFAULT_MAX_GAME_DURATION_MS)
    before = db.dump()

    with pytest.raises(NoActiveSession):
        await service.end_session(OWNER, "alice.near", 10)

    assert db.dump() == before
    assert await service.remaining("alice.near") == (DEFAULT_FREE_GAMES - 1, 1)
    assert service.mint_gateway.pending == 0


@pytest.mark.asyncio
async def test_end_game_dispatches_mint(caplog):
    caplog.set_level(logging.INFO)
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=["500", "10500"])

    service = make_service(mint_handler=handler)
    await service.request_session("alice.near", MIN_DEPOSIT)

    task = await service.end_session(OWNER, "alice.near", 500, referral="bob.near")
    await service.mint_gateway.wait_pending()

    assert task.result().minted_amount == 500
    assert len(calls) == 1
    assert calls[0].url.path == "/contracts/minter.near/mint"
    assert await service.get_active_session("alice.near") is None
    assert MINT_SUCCESS in caplog.text


@pytest.mark.asyncio
async def test_failed_mint_keeps_game_ended(caplog):
    caplog.set_level(logging.INFO)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "out of gas"})

    db = make_db()
    service = make_service(db, mint_handler=handler)
    await service.request_session("alice.near", MIN_DEPOSIT)

    await service.end_session(OWNER, "alice.near", 500)
    await service.mint_gateway.wait_pending()

    assert db.ongoing_games.documents == []
    assert MINT_FAILURE in caplog.text


@pytest.mark.asyncio
async def test_end_game_without_reward_skips_mint():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json=["0", "0"])

    service = make_service(mint_handler=handler)
    await service.request_session("alice.near", MIN_DEPOSIT)

    assert await service.end_session(OWNER, "alice.near", 0) is None
    assert calls == []
    assert service.mint_gateway.pending == 0


@pytest.mark.asyncio
async def test_owner_only_operations():
    db = make_db()
    service = make_service(db)
    await service.request_session("alice.near", MIN_DEPOSIT)
    before = db.dump()

    with pytest.raises(UnauthorizedCaller, match="Only the owner"):
        await service.end_session("alice.near", "alice.near", 100)
    with pytest.raises(UnauthorizedCaller):
        await service.set_price("alice.near", 5, 10)
    with pytest.raises(UnauthorizedCaller):
        await service.remove_price("alice.near", 1)
    with pytest.raises(UnauthorizedCaller):
        await service.grant_free_games("alice.near", "alice.near", 100)
    with pytest.raises(UnauthorizedCaller):
        await service.set_payment_token("alice.near", "mine.near")
    with pytest.raises(UnauthorizedCaller):
        await service.set_mint_service("alice.near", "mine.near")
    with pytest.raises(UnauthorizedCaller):
        await service.set_max_game_duration("alice.near", 1)

    assert db.dump() == before


@pytest.mark.asyncio
async def test_owner_grants_free_games():
    service = make_service()

    assert await service.grant_free_games(OWNER, "alice.near", 3) == DEFAULT_FREE_GAMES + 3
    assert await service.remaining_free("alice.near") == DEFAULT_FREE_GAMES + 3


@pytest.mark.asyncio
async def test_owner_manages_prices():
    service = make_service()

    await service.set_price(OWNER, 20, to_token_units(13))
    await service.remove_price(OWNER, 1)

    assert await service.list_prices() == [(20, to_token_units(13)), (10, to_token_units(14))]


@pytest.mark.asyncio
async def test_max_game_duration():
    clock = FixedClock()
    service = make_service(clock=clock)

    with pytest.raises(InvalidArgument):
        await service.set_max_game_duration(OWNER, 0)

    await service.set_max_game_duration(OWNER, 10)
    await service.request_session("alice.near", MIN_DEPOSIT)
    clock.advance(10_000)

    assert await service.get_active_session("alice.near") is None
    assert (await service.get_state_snapshot()).max_game_duration == 10_000


@pytest.mark.asyncio
async def test_state_snapshot_defaults():
    service = make_service()

    snapshot = await service.get_state_snapshot()

    assert snapshot.owner_id == OWNER
    assert snapshot.payment_token_id == TOKEN
    assert snapshot.game_costs == [["1", str(to_token_units(15))], ["10", str(to_token_units(14))]]
    assert snapshot.seed_id == 0
    assert snapshot.min_deposit == str(MIN_DEPOSIT)
    assert snapshot.max_game_duration == DEFAULT_MAX_GAME_DURATION_MS


@pytest.mark.asyncio
async def test_amounts_outside_u128_rejected():
    service = make_service()

    with pytest.raises(InvalidArgument):
        await service.on_token_transfer(TOKEN, "alice.near", 2 ** 128)
