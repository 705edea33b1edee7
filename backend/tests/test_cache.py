"""
Query cache and invalidation table
"""
import asyncio

import pytest

from hotelops.services.cache import MUTATION_INVALIDATIONS, TABLE_INVALIDATIONS, QueryCache


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_prefix_invalidation():
    cache = QueryCache()
    cache.set(("rooms",), ["all"])
    cache.set(("rooms", "room-101"), "one")
    cache.set(("room-types",), ["types"])

    assert cache.invalidate(("rooms",)) == 2
    assert cache.get(("rooms", "room-101")) is None
    assert cache.get(("room-types",)) == ["types"]


def test_entries_expire():
    clock = FakeClock()
    cache = QueryCache(default_ttl=30, clock=clock)
    cache.set(("rooms",), "value")
    clock.now = 29.9
    assert cache.get(("rooms",)) == "value"
    clock.now = 30
    assert cache.get(("rooms",)) is None


def test_get_or_load_reads_through_once():
    cache = QueryCache()
    loads = []

    async def loader():
        loads.append(1)
        return "fresh"

    async def run():
        first = await cache.get_or_load(("rooms",), loader)
        second = await cache.get_or_load(("rooms",), loader)
        return first, second

    assert asyncio.run(run()) == ("fresh", "fresh")
    assert len(loads) == 1


def test_zero_ttl_is_not_stored():
    cache = QueryCache()

    async def loader():
        return "value"

    asyncio.run(cache.get_or_load(("rooms",), loader, ttl=0))
    assert cache.get(("rooms",)) is None


def test_mutation_fills_placeholders():
    cache = QueryCache()
    cache.set(("guest", "g1"), "guest one")
    cache.set(("guest", "g2"), "guest two")
    cache.set(("guest-documents", "g1"), [])

    prefixes = cache.invalidate_for("guest_document.upload", guest_id="g1")

    assert prefixes == [("guest-documents", "g1"), ("guest", "g1")]
    assert cache.get(("guest", "g1")) is None
    assert cache.get(("guest", "g2")) == "guest two"


def test_check_in_refreshes_rooms():
    cache = QueryCache()
    cache.set(("rooms",), [])
    cache.invalidate_for("reservation.check_in", reservation_id="r1")
    assert cache.get(("rooms",)) is None


@pytest.mark.parametrize("mutation", sorted(k for k in MUTATION_INVALIDATIONS if k.startswith("reservation.")))
def test_every_reservation_mutation_drops_reservation_lists(mutation):
    assert ("reservations",) in MUTATION_INVALIDATIONS[mutation]


def test_table_change_and_unknown_table():
    cache = QueryCache()
    cache.set(("occupancy-rate", "2024-01-10", "2024-01-10"), {})
    cache.set(("audit", "x"), 1)
    assert cache.invalidate_table("reservations") == 1
    assert cache.invalidate_table("audit") == 1
    assert set(TABLE_INVALIDATIONS) >= {"rooms", "reservations"}


def test_expired_entries_are_purged_on_store():
    clock = FakeClock()
    cache = QueryCache(default_ttl=30, clock=clock)
    for n in range(10000):
        clock.now = n * 60
        cache.set(("available-rooms", f'{{"search": {n}}}'), [])
    assert len(cache) == 1


def test_size_is_capped_least_recently_used_first():
    cache = QueryCache(maxsize=3)
    cache.set(("guests", "a"), "a")
    cache.set(("guests", "b"), "b")
    cache.set(("guests", "c"), "c")
    assert cache.get(("guests", "a")) == "a"

    cache.set(("guests", "d"), "d")

    assert len(cache) == 3
    assert cache.get(("guests", "b")) is None
    assert [cache.get(("guests", k)) for k in "acd"] == ["a", "c", "d"]


@pytest.mark.parametrize("mutation", [
    "reservation.create", "reservation.update", "reservation.cancel",
    "reservation.check_in", "reservation.check_out",
])
def test_status_changes_drop_availability_reads(mutation):
    cache = QueryCache()
    for key in [("occupancy-rate", "2024-01-10", "2024-01-10"), ("available-rooms", "{}"),
                ("room-availability", "room-101")]:
        cache.set(key, "stale")

    cache.invalidate_for(mutation, reservation_id="r1")

    assert len(cache) == 0


def test_cancel_drops_upcoming_departures():
    assert ("upcoming-checkouts",) in MUTATION_INVALIDATIONS["reservation.cancel"]
