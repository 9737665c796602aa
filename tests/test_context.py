"""Tests for the conversation context store."""

import threading

from bubu.domain.context import SLOT_TTLS, ContextSlot, InMemoryContextStore

PHONE = "5551234567"


def test_put_and_get(context_store):
    """Test storing and reading a slot."""
    context_store.put(PHONE, ContextSlot.PENDING_TRANSACTION, {"amount": "350"})
    assert context_store.get(PHONE, ContextSlot.PENDING_TRANSACTION) == {"amount": "350"}
    assert context_store.get("5559876543", ContextSlot.PENDING_TRANSACTION) is None


def test_slot_present_just_before_ttl(context_store, clock):
    """Test a slot read one millisecond before its TTL is still there."""
    context_store.put(PHONE, ContextSlot.PENDING_TRANSACTION, {"amount": "350"})
    clock.advance(SLOT_TTLS[ContextSlot.PENDING_TRANSACTION] - 0.001)
    assert context_store.get(PHONE, ContextSlot.PENDING_TRANSACTION) is not None


def test_slot_absent_just_after_ttl(context_store, clock):
    """Test a slot read one millisecond after its TTL is gone."""
    context_store.put(PHONE, ContextSlot.PENDING_TRANSACTION, {"amount": "350"})
    clock.advance(SLOT_TTLS[ContextSlot.PENDING_TRANSACTION] + 0.001)
    assert context_store.get(PHONE, ContextSlot.PENDING_TRANSACTION) is None


def test_slots_expire_independently(context_store, clock):
    """Test an expired pending slot does not take the last transaction with it."""
    context_store.put(PHONE, ContextSlot.PENDING_TRANSACTION, {"amount": "350"})
    context_store.put(PHONE, ContextSlot.LAST_TRANSACTION, {"transaction_id": 7})
    clock.advance(6 * 60)

    assert context_store.get(PHONE, ContextSlot.PENDING_TRANSACTION) is None
    assert context_store.get(PHONE, ContextSlot.LAST_TRANSACTION) == {"transaction_id": 7}


def test_put_resets_timestamp(context_store, clock):
    """Test overwriting a slot restarts its TTL."""
    context_store.put(PHONE, ContextSlot.EDITING_TRANSACTION, {"transaction_id": 1})
    clock.advance(4 * 60)
    context_store.put(PHONE, ContextSlot.EDITING_TRANSACTION, {"transaction_id": 2})
    clock.advance(4 * 60)
    assert context_store.get(PHONE, ContextSlot.EDITING_TRANSACTION) == {"transaction_id": 2}


def test_pop_removes(context_store):
    """Test pop returns the value once."""
    context_store.put(PHONE, ContextSlot.PENDING_RECEIPT, {"status": "pending_amount"})
    assert context_store.pop(PHONE, ContextSlot.PENDING_RECEIPT) == {"status": "pending_amount"}
    assert context_store.pop(PHONE, ContextSlot.PENDING_RECEIPT) is None


def test_clear_is_idempotent(context_store):
    """Test clearing an empty slot is a no-op."""
    context_store.clear(PHONE, ContextSlot.PENDING_TRANSACTION)
    context_store.put(PHONE, ContextSlot.PENDING_TRANSACTION, {"amount": "1"})
    context_store.clear(PHONE, ContextSlot.PENDING_TRANSACTION)
    context_store.clear(PHONE, ContextSlot.PENDING_TRANSACTION)
    assert context_store.get(PHONE, ContextSlot.PENDING_TRANSACTION) is None


def test_clear_all_only_touches_one_phone(context_store):
    """Test clear_all leaves other phones alone."""
    context_store.put(PHONE, ContextSlot.LAST_TRANSACTION, {"transaction_id": 1})
    context_store.put(PHONE, ContextSlot.TRANSACTION_LIST, [{"transaction_id": 1}])
    context_store.put("5559876543", ContextSlot.LAST_TRANSACTION, {"transaction_id": 2})

    context_store.clear_all(PHONE)

    assert context_store.get(PHONE, ContextSlot.LAST_TRANSACTION) is None
    assert context_store.get(PHONE, ContextSlot.TRANSACTION_LIST) is None
    assert context_store.get("5559876543", ContextSlot.LAST_TRANSACTION) == {"transaction_id": 2}


def test_resolve_list_index(context_store, clock):
    """Test 1-based lookup into the last shown list."""
    entries = [{"transaction_id": 10}, {"transaction_id": 20}, {"transaction_id": 30}]
    context_store.put(PHONE, ContextSlot.TRANSACTION_LIST, entries)

    assert context_store.resolve_list_index(PHONE, 1) == {"transaction_id": 10}
    assert context_store.resolve_list_index(PHONE, 3) == {"transaction_id": 30}
    assert context_store.resolve_list_index(PHONE, 0) is None
    assert context_store.resolve_list_index(PHONE, 4) is None
    assert context_store.resolve_list_index(PHONE, None) is None

    clock.advance(31 * 60)
    assert context_store.resolve_list_index(PHONE, 1) is None


def test_sweep_evicts_expired(context_store, clock):
    """Test sweep removes expired slots and reports how many."""
    context_store.put(PHONE, ContextSlot.PENDING_TRANSACTION, {"amount": "1"})
    context_store.put(PHONE, ContextSlot.TRANSACTION_LIST, [])
    clock.advance(6 * 60)

    assert context_store.sweep() == 1
    assert context_store.sweep() == 0


def test_custom_ttls(clock):
    """Test TTL overrides."""
    store = InMemoryContextStore(clock=clock, ttls={ContextSlot.LAST_TRANSACTION: 1})
    store.put(PHONE, ContextSlot.LAST_TRANSACTION, {"transaction_id": 1})
    clock.advance(2)
    assert store.get(PHONE, ContextSlot.LAST_TRANSACTION) is None


def test_concurrent_pop_hands_out_value_once():
    """Test only one of many racing readers consumes a pending slot."""
    store = InMemoryContextStore()
    store.put(PHONE, ContextSlot.PENDING_TRANSACTION, {"amount": "500"})
    barrier = threading.Barrier(8)
    results = []

    def consume():
        barrier.wait()
        results.append(store.pop(PHONE, ContextSlot.PENDING_TRANSACTION))

    threads = [threading.Thread(target=consume) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert [r for r in results if r is not None] == [{"amount": "500"}]
