# tests/test_queue_service.py
import pytest

from smartq.backend.app.errors import (
    DuplicateError,
    EmptyQueueError,
    NotFoundError,
    NotYourTurnError,
    ValidationError,
)
from smartq.backend.app.queue.entry import QueueStatus
from concurrent.futures import ThreadPoolExecutor

from smartq.backend.app.queue.service import (
    QueueService,
    canonical_phone,
    mask_phone,
    normalize_phone,
)


def test_join_on_empty_queue_is_first(service):
    service.join("Alice", "9876543210")
    assert service.position("9876543210") == 1


def test_join_strips_name_and_phone_separators(service):
    entry = service.join("  Alice  ", "98765 43210")
    assert entry.name == "Alice"
    assert entry.phone == "9876543210"
    assert service.position("98765-43210") == 1


@pytest.mark.parametrize("name", ["", "   ", None, "x" * 101])
def test_join_rejects_bad_names(service, name):
    with pytest.raises(ValidationError):
        service.join(name, "9876543210")


@pytest.mark.parametrize("phone", ["", "12345", "1234567890", "98765432101234", "abcdefghij"])
def test_join_rejects_bad_phones(service, phone):
    with pytest.raises(ValidationError):
        service.join("Alice", phone)


def test_join_accepts_country_code(service):
    entry = service.join("Alice", "+919876543210")
    assert entry.phone == "9876543210"


def test_duplicate_waiting_phone_rejected(service):
    service.join("Alice", "9876543210")
    with pytest.raises(DuplicateError):
        service.join("Alice again", "9876543210")


def test_phone_can_rejoin_once_called(service):
    service.join("Alice", "9876543210")
    service.call_next()
    entry = service.join("Alice", "9876543210")
    assert entry.status == QueueStatus.WAITING
    assert service.position("9876543210") == 1


def test_call_next_empty_queue(service):
    with pytest.raises(EmptyQueueError):
        service.call_next()


def test_call_next_in_insertion_order(service):
    alice = service.join("Alice", "9876543210")
    bob = service.join("Bob", "9123456789")

    first = service.call_next()
    second = service.call_next()

    assert first.id == alice.id
    assert second.id == bob.id
    with pytest.raises(EmptyQueueError):
        service.call_next()


def test_call_next_stamps_called_at(service):
    service.join("Alice", "9876543210")
    called = service.call_next()
    assert called.status == QueueStatus.CALLED
    assert called.called_at is not None
    assert called.called_at >= called.timestamp


def test_alice_and_bob_positions(service):
    service.join("Alice", "9876543210")
    service.join("Bob", "9123456789")
    assert service.position("9876543210") == 1
    assert service.position("9123456789") == 2

    called = service.call_next()
    assert called.name == "Alice"
    assert called.status == QueueStatus.CALLED
    assert service.position("9123456789") == 1
    with pytest.raises(NotFoundError):
        service.position("9876543210")


def test_remove_unknown_id(service):
    with pytest.raises(NotFoundError):
        service.remove(42)


def test_remove_then_position_not_found(service):
    entry = service.join("Alice", "9876543210")
    service.remove(entry.id)
    with pytest.raises(NotFoundError):
        service.position("9876543210")
    with pytest.raises(NotFoundError):
        service.remove(entry.id)


def test_remove_works_from_any_state(service):
    service.join("Alice", "9876543210")
    called = service.call_next()
    service.remove(called.id)
    assert service.list() == []


def test_confirm_reached_after_call(service):
    service.join("Alice", "9876543210")
    service.call_next()
    entry = service.confirm_reached("9876543210")
    assert entry.status == QueueStatus.REACHED


def test_confirm_reached_while_waiting(service):
    service.join("Alice", "9876543210")
    with pytest.raises(NotYourTurnError):
        service.confirm_reached("9876543210")


def test_confirm_reached_unknown_phone(service):
    with pytest.raises(NotFoundError):
        service.confirm_reached("9876543210")


def test_confirm_reached_twice_is_idempotent(service):
    service.join("Alice", "9876543210")
    service.call_next()
    first = service.confirm_reached("9876543210")
    second = service.confirm_reached("9876543210")
    assert second.status == QueueStatus.REACHED
    assert second.id == first.id


def test_reached_never_returns_to_waiting(service):
    service.join("Alice", "9876543210")
    service.call_next()
    service.confirm_reached("9876543210")
    with pytest.raises(EmptyQueueError):
        service.call_next()


def test_customer_status(service):
    service.join("Alice", "9876543210")
    service.join("Bob", "9123456789")

    entry, position = service.customer_status("9123456789")
    assert entry.name == "Bob"
    assert position == 2
    assert service.estimated_wait(position) == 10

    service.call_next()
    entry, position = service.customer_status("9876543210")
    assert entry.status == QueueStatus.CALLED
    assert position is None


def test_list_filters_by_status(service):
    service.join("Alice", "9876543210")
    service.join("Bob", "9123456789")
    service.call_next()

    assert [e.name for e in service.list()] == ["Alice", "Bob"]
    assert [e.name for e in service.list(QueueStatus.WAITING)] == ["Bob"]
    assert [e.name for e in service.list(QueueStatus.CALLED)] == ["Alice"]


def test_phone_helpers():
    assert normalize_phone(" (987) 654-3210 ") == "9876543210"
    assert mask_phone("9876543210") == "987****210"


def test_canonical_phone():
    assert canonical_phone("9876543210") == "9876543210"
    assert canonical_phone("919876543210") == "9876543210"
    assert canonical_phone("+91 98765-43210") == "9876543210"


@pytest.mark.parametrize("other", ["919876543210", "+919876543210", "+91 98765 43210"])
def test_duplicate_detected_across_phone_spellings(service, other):
    service.join("Alice", "9876543210")
    with pytest.raises(DuplicateError):
        service.join("Alice", other)


def test_lookups_match_across_phone_spellings(service):
    service.join("Alice", "+919876543210")
    assert service.position("9876543210") == 1
    assert service.position("919876543210") == 1

    entry, position = service.customer_status("98765 43210")
    assert entry.phone == "9876543210"
    assert position == 1

    service.call_next()
    assert service.confirm_reached("+919876543210").status == QueueStatus.REACHED


def test_concurrent_call_next_never_repeats(store):
    service = QueueService(store)
    count = 20
    for i in range(count):
        service.join(f"Customer {i}", f"9{i:09d}")

    with ThreadPoolExecutor(max_workers=8) as pool:
        called = list(pool.map(lambda _: service.call_next().id, range(count)))

    assert len(set(called)) == count
    with pytest.raises(EmptyQueueError):
        service.call_next()
