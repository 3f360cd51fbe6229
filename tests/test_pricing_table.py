import pytest

from config import to_token_units
from app.contract.errors import CapacityExceeded, InvalidArgument, NotFound
from app.contract.models import ContractState
from app.contract.pricing import PricingTable

from tests.utils import MINTER, OWNER, TOKEN


@pytest.fixture
def pricing():
    return PricingTable(ContractState.initial(OWNER, TOKEN, MINTER))


def test_default_prices(pricing):
    assert pricing.list() == [(1, to_token_units(15)), (10, to_token_units(14))]


def test_update_keeps_slot(pricing):
    pricing.set_price(1, 20)

    assert pricing.list() == [(1, 20), (10, to_token_units(14))]


def test_remove_then_lookup(pricing):
    pricing.remove_price(10)

    assert pricing.list() == [(1, to_token_units(15))]
    with pytest.raises(NotFound, match="bundle 10"):
        pricing.price_for(10)


def test_remove_moves_last_entry_into_gap(pricing):
    pricing.set_price(20, 13)
    pricing.set_price(50, 12)

    pricing.remove_price(1)

    assert [size for size, _ in pricing.list()] == [50, 10, 20]


def test_remove_last_entry(pricing):
    pricing.remove_price(10)
    pricing.remove_price(1)

    assert pricing.list() == []


def test_capacity_only_applies_to_new_sizes(pricing):
    pricing.set_price(20, 13)
    pricing.set_price(50, 12)

    with pytest.raises(CapacityExceeded, match="more than 4"):
        pricing.set_price(100, 11)

    pricing.set_price(50, 10)
    assert pricing.price_for(50) == 10
    assert len(pricing.list()) == 4


@pytest.mark.parametrize("bundle_size", [0, 256])
def test_bundle_size_bounds(pricing, bundle_size):
    with pytest.raises(InvalidArgument):
        pricing.set_price(bundle_size, 1)


def test_bundle_size_upper_bound_accepted(pricing):
    pricing.set_price(255, 1)
    assert pricing.price_for(255) == 1


def test_price_must_be_positive(pricing):
    with pytest.raises(InvalidArgument):
        pricing.set_price(5, 0)
    assert len(pricing.list()) == 2


def test_remove_missing_size(pricing):
    with pytest.raises(NotFound, match="Key 7 does not exist"):
        pricing.remove_price(7)
