import pytest

from ot_trace.core.exceptions import DiagramInconsistencyError, UnknownUnitError
from ot_trace.db.schemas.client_log import (
    ClientLogItem,
    ReceivedOwnOperation,
    Synchronized,
    UserEditAddedToBuffer,
)
from ot_trace.utils.presentation import SelfOpenStatus
from ot_trace.utils.sequence import INITIAL_STATE_KEY, TraceView, render_client_log
from tests.factories import make_op


def test_newest_first_with_initial_state_last():
    s0, s1, s2 = (Synchronized(server_revision=i) for i in range(3))
    e1 = UserEditAddedToBuffer()
    e2 = ReceivedOwnOperation(acknowledged_operation=make_op("A"))
    log = [ClientLogItem(entry=e1, new_state=s1), ClientLogItem(entry=e2, new_state=s2)]

    items = render_client_log(log, s0)

    assert [(item.entry, item.state) for item in items] == [(e2, s2), (e1, s1), (None, s0)]
    assert items[-1].entry_layout is None
    assert [item.key for item in items] == ["log-entry-2", "log-entry-1", INITIAL_STATE_KEY]


def test_keys_are_stable_as_the_log_grows(sample_log, initial_state):
    before = {item.key: item.entry for item in render_client_log(sample_log[:1], initial_state)}
    after = {item.key: item.entry for item in render_client_log(sample_log, initial_state)}
    assert after["log-entry-1"] == before["log-entry-1"]
    assert "log-entry-2" not in before


def test_log_is_not_mutated(sample_log, initial_state):
    snapshot = [item.model_copy(deep=True) for item in sample_log]
    render_client_log(sample_log, initial_state)
    assert sample_log == snapshot


def test_empty_log_renders_only_initial_state(initial_state):
    items = render_client_log([], initial_state)
    assert len(items) == 1
    assert items[0].key == INITIAL_STATE_KEY


def test_inconsistent_diagram_warns_or_raises(sample_log, initial_state, caplog):
    broken = sample_log[1].model_copy(deep=True)
    broken.entry.transformed_received_operation = make_op("X", ["Y", "Y"])
    log = [sample_log[0], broken]

    with caplog.at_level("WARNING"):
        items = render_client_log(log, initial_state)
    assert len(items) == 3
    assert "inconsistent diagram" in caplog.text

    with pytest.raises(DiagramInconsistencyError):
        render_client_log(log, initial_state, strict=True)


class TestTraceView:
    def test_units_for_every_operation_occurrence(self, sample_log, initial_state):
        view = TraceView(sample_log, initial_state)
        keys = set(view.units)
        assert {f"log-entry-2/diagram/{i}" for i in range(4)} <= keys
        assert "log-entry-2/label/received_operation" in keys
        assert "log-entry-2/state/awaited_operation" in keys
        assert "log-entry-1/label/operation" in keys
        assert not any(key.startswith(INITIAL_STATE_KEY) for key in keys)
        assert view.units["log-entry-2/diagram/2"].tooltip_placement == "left"

    def test_hovering_highlights_related_units_across_rows(self, sample_log, initial_state):
        view = TraceView(sample_log, initial_state)
        # awaited operation Y in the conflict diagram
        view.pointer_enter("log-entry-2/diagram/0")

        visible = {unit.key: unit for unit in view.visible_units()}
        assert visible["log-entry-2/diagram/0"].status == "OPEN"
        assert visible["log-entry-1/label/operation"].tooltip_content == "同一变更"
        assert visible["log-entry-2/diagram/1"].tooltip_content == "一次 转化之后"
        assert visible["log-entry-2/state/awaited_operation"].tooltip_content == "一次 转化之后"
        assert "log-entry-2/diagram/2" not in visible

        view.pointer_leave("log-entry-2/diagram/0")
        assert view.visible_units() == []

    def test_at_most_one_open(self, sample_log, initial_state):
        view = TraceView(sample_log, initial_state)
        for key in ["log-entry-2/diagram/0", "log-entry-2/diagram/2", "log-entry-1/label/operation"]:
            view.pointer_enter(key)
            assert sum(u.status is SelfOpenStatus.OPEN for u in view.units.values()) == 1

    def test_views_are_isolated(self, sample_log, initial_state):
        first = TraceView(sample_log, initial_state)
        second = TraceView(sample_log, initial_state)
        first.pointer_enter("log-entry-2/diagram/0")
        assert second.visible_units() == []
        assert second.coordinator.get_hovered() is None

    def test_unknown_unit(self, sample_log, initial_state):
        view = TraceView(sample_log, initial_state)
        with pytest.raises(UnknownUnitError):
            view.pointer_enter("nope")

    def test_close_tears_down_hover_state(self, sample_log, initial_state):
        view = TraceView(sample_log, initial_state)
        view.pointer_enter("log-entry-2/diagram/0")
        view.close()
        assert view.coordinator.get_hovered() is None
        assert all(u.status is SelfOpenStatus.CLOSED for u in view.units.values())
