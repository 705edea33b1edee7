"""
Query Cache
Read-through cache keyed by query tuples, with an explicit table of which
cached reads each mutation and each change-feed table invalidates.

Keys are tuples such as ``("rooms",)`` or ``("reservation", "<id>")``.
Invalidating a key drops every cached entry whose key starts with it, so
``("rooms",)`` also drops ``("rooms", "<id>")``.

Expired entries are purged whenever a value is stored, and the cache holds at
most ``maxsize`` entries, evicting the least recently used first.
"""
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple
import logging
import time

logger = logging.getLogger(__name__)

QueryKey = Tuple[Any, ...]

# mutation -> key templates dropped after the mutation succeeds.
# "{name}" placeholders are filled from the mutation's parameters.
MUTATION_INVALIDATIONS: Dict[str, List[QueryKey]] = {
    "room.create":              [("rooms",)],
    "room.update":              [("rooms",)],
    "room.update_status":       [("rooms",)],
    "room.bulk_update_status":  [("rooms",)],
    "room.delete":              [("rooms",)],

    "room_type.create":         [("room-types",)],
    "room_type.update":         [("room-types",), ("rooms",)],
    "room_type.delete":         [("room-types",)],

    "guest.create":             [("guests",)],
    "guest.update":             [("guests",), ("guest", "{guest_id}")],
    "guest.deactivate":         [("guests",), ("guest", "{guest_id}")],
    "guest.restore":            [("guests",), ("guest", "{guest_id}")],
    "guest.merge":              [("guests",), ("guest",), ("guest-documents",),
                                 ("guest-reservations",), ("reservations",)],

    "guest_document.upload":    [("guest-documents", "{guest_id}"), ("guest", "{guest_id}")],
    "guest_document.delete":    [("guest-documents", "{guest_id}"), ("guest", "{guest_id}")],

    "reservation.create":       [("reservations",), ("guest-reservations",), ("upcoming-checkins",),
                                 ("available-rooms",), ("room-availability",), ("occupancy-rate",)],
    "reservation.update":       [("reservations",), ("reservation", "{reservation_id}"), ("guest-reservations",),
                                 ("upcoming-checkins",), ("upcoming-checkouts",), ("available-rooms",),
                                 ("room-availability",), ("occupancy-rate",)],
    "reservation.cancel":       [("reservations",), ("reservation", "{reservation_id}"), ("guest-reservations",),
                                 ("upcoming-checkins",), ("upcoming-checkouts",), ("available-rooms",),
                                 ("room-availability",), ("occupancy-rate",)],
    "reservation.check_in":     [("reservations",), ("reservation", "{reservation_id}"), ("rooms",),
                                 ("upcoming-checkins",), ("upcoming-checkouts",), ("available-rooms",),
                                 ("room-availability",), ("occupancy-rate",)],
    "reservation.check_out":    [("reservations",), ("reservation", "{reservation_id}"), ("rooms",),
                                 ("upcoming-checkins",), ("upcoming-checkouts",), ("available-rooms",),
                                 ("room-availability",), ("occupancy-rate",)],
    "reservation.change_room":  [("reservations",), ("reservation", "{reservation_id}"), ("guest-reservations",),
                                 ("rooms",), ("upcoming-checkins",), ("upcoming-checkouts",), ("available-rooms",),
                                 ("room-availability",), ("occupancy-rate",)],
    "reservation.delete":       [("reservations",), ("reservation", "{reservation_id}"), ("guest-reservations",),
                                 ("upcoming-checkins",), ("upcoming-checkouts",), ("available-rooms",),
                                 ("room-availability",), ("occupancy-rate",), ("invoices",), ("financial",)],

    "invoice.create":           [("invoices",), ("financial",)],
    "invoice.update":           [("invoices",), ("invoice", "{invoice_id}"), ("financial",)],
    "invoice.line_items":       [("invoices",), ("invoice", "{invoice_id}"), ("financial",)],

    "payment.create":           [("payments",), ("invoices",), ("invoice", "{invoice_id}"), ("financial",)],
    "payment.update":           [("payments",), ("invoices",), ("invoice",), ("financial",)],
    "refund.request":           [("payments",)],
    "refund.approve":           [("payments",)],
    "refund.process":           [("payments",), ("invoices",), ("invoice",), ("financial",)],

    "pricing_rule.create":      [("pricing-rules",)],
    "pricing_rule.update":      [("pricing-rules",)],
    "pricing_rule.delete":      [("pricing-rules",)],
}

# change-feed table -> key templates dropped when a change (or a reconnect) is seen
TABLE_INVALIDATIONS: Dict[str, List[QueryKey]] = {
    "rooms":           [("rooms",), ("available-rooms",), ("room-availability",)],
    "room_types":      [("room-types",), ("rooms",)],
    "reservations":    [("reservations",), ("reservation",), ("guest-reservations",), ("available-rooms",),
                        ("room-availability",), ("occupancy-rate",), ("upcoming-checkins",),
                        ("upcoming-checkouts",)],
    "guests":          [("guests",), ("guest",)],
    "guest_documents": [("guest-documents",), ("guest",)],
    "invoices":           [("invoices",), ("invoice",), ("financial",)],
    "invoice_line_items": [("invoices",), ("invoice",), ("financial",)],
    "payments":           [("payments",), ("invoices",), ("invoice",), ("financial",)],
    "refunds":            [("payments",), ("financial",)],
    "pricing_rules":      [("pricing-rules",)],
}


def _fill(template: QueryKey, params: Dict[str, Any]) -> QueryKey:
    filled = []
    for part in template:
        if isinstance(part, str) and part.startswith("{") and part.endswith("}"):
            filled.append(str(params[part[1:-1]]))
        else:
            filled.append(part)
    return tuple(filled)


class QueryCache:
    """In-process cache shared by the request handlers of one application."""

    def __init__(
        self,
        default_ttl: float = 30.0,
        maxsize: int = 1024,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self.maxsize = maxsize
        self._clock = clock
        self._entries: "OrderedDict[QueryKey, Tuple[float, Any]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def _lookup(self, key: QueryKey) -> Optional[Tuple[float, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry[0]:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def get(self, key: QueryKey) -> Optional[Any]:
        entry = self._lookup(key)
        return None if entry is None else entry[1]

    def set(self, key: QueryKey, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self.purge_expired()
        self._entries[key] = (self._clock() + ttl, value)
        self._entries.move_to_end(key)
        while len(self._entries) > self.maxsize:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Query cache full, evicted %s", evicted)

    async def get_or_load(
        self,
        key: QueryKey,
        loader: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None,
    ) -> Any:
        """Return the cached value for ``key`` or load, store and return it."""
        entry = self._lookup(key)
        if entry is not None:
            return entry[1]
        value = await loader()
        if ttl != 0:
            self.set(key, value, ttl)
        return value

    def invalidate(self, prefix: QueryKey) -> int:
        stale = [key for key in self._entries if key[:len(prefix)] == prefix]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def invalidate_many(self, prefixes: Iterable[QueryKey]) -> int:
        return sum(self.invalidate(prefix) for prefix in prefixes)

    def invalidate_for(self, mutation: str, **params: Any) -> List[QueryKey]:
        """Drop every read listed for ``mutation``. Returns the prefixes used."""
        prefixes = [_fill(t, params) for t in MUTATION_INVALIDATIONS[mutation]]
        dropped = self.invalidate_many(prefixes)
        logger.debug("%s invalidated %d cached reads", mutation, dropped)
        return prefixes

    def invalidate_table(self, table: str) -> int:
        dropped = self.invalidate_many(TABLE_INVALIDATIONS.get(table, [(table,)]))
        logger.debug("Change on %s invalidated %d cached reads", table, dropped)
        return dropped

    def clear(self) -> None:
        self._entries.clear()
