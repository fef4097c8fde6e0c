from ot_trace.utils.hover import HoverCoordinator
from tests.factories import make_op


def test_starts_idle():
    assert HoverCoordinator().get_hovered() is None


def test_set_then_clear():
    coordinator = HoverCoordinator()
    coordinator.set_hovered(make_op("A"))
    assert coordinator.get_hovered().meta.id == "A"
    coordinator.set_hovered(None)
    assert coordinator.get_hovered() is None


def test_stores_operation_without_payload():
    coordinator = HoverCoordinator()
    coordinator.set_hovered(make_op("A", ["x"], base={"insert": "abc"}))
    hovered = coordinator.get_hovered()
    assert not hasattr(hovered, "base")
    assert hovered.transformed_against == ["x"]


def test_latest_set_wins_and_listeners_see_every_change():
    coordinator = HoverCoordinator()
    seen = []
    coordinator.subscribe(lambda op: seen.append(op.meta.id if op else None))

    coordinator.set_hovered(make_op("A"))
    coordinator.set_hovered(make_op("B"))
    coordinator.set_hovered(None)

    assert seen == ["A", "B", None]


def test_same_value_does_not_notify():
    coordinator = HoverCoordinator()
    seen = []
    coordinator.subscribe(seen.append)
    coordinator.set_hovered(make_op("A"))
    coordinator.set_hovered(make_op("A"))
    assert len(seen) == 1


def test_stale_release_is_a_noop():
    coordinator = HoverCoordinator()
    first, second = object(), object()
    coordinator.set_hovered(make_op("A"), owner=first)
    coordinator.set_hovered(make_op("B"), owner=second)

    assert coordinator.release(first) is False
    assert coordinator.get_hovered().meta.id == "B"

    assert coordinator.release(second) is True
    assert coordinator.get_hovered() is None


def test_unsubscribe_and_close():
    coordinator = HoverCoordinator()
    seen = []
    unsubscribe = coordinator.subscribe(seen.append)
    other = []
    coordinator.subscribe(other.append)

    unsubscribe()
    unsubscribe()
    coordinator.set_hovered(make_op("A"))
    assert seen == []
    assert len(other) == 1

    coordinator.close()
    assert coordinator.get_hovered() is None
    coordinator.set_hovered(make_op("B"))
    assert len(other) == 1
