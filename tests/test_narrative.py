from ot_trace.db.schemas import client_log as log_types
from ot_trace.utils.dispatcher import dispatch_entry, dispatch_state
from ot_trace.utils.narrative import ENTRY_TEMPLATES, render_entry_label, render_state_label
from tests.factories import make_op


def test_every_entry_template_is_filled(conflict_entry):
    entries = [
        log_types.UserEditAddedToBuffer(),
        log_types.UserEditImmediatelySentToServer(operation=make_op("A")),
        log_types.UserEditStoredAsBuffer(operation=make_op("A")),
        log_types.ReceivedOwnOperation(acknowledged_operation=make_op("A")),
        log_types.ReceivedOwnOperationAndSentBuffer(acknowledged_operation=make_op("A"), sent_buffer=make_op("B")),
        log_types.ReceivedServerOperationWhileSynchronized(received_operation=make_op("R")),
        conflict_entry,
        log_types.ReceivedServerOperationWhileAwaitingOperationWithBuffer(
            received_operation=make_op("R"),
            once_transformed_received_operation=make_op("R", ["A"]),
            twice_transformed_received_operation=make_op("R", ["A", "B"]),
            awaited_operation=make_op("A"),
            transformed_awaited_operation=make_op("A", ["R"]),
            buffer_operation=make_op("B"),
            transformed_buffer_operation=make_op("B", ["R"]),
        ),
    ]
    templates = set()
    for entry in entries:
        layout = dispatch_entry(entry)
        label = render_entry_label(layout)
        assert "{" not in label
        templates.add(layout.label_template)
    assert templates == set(ENTRY_TEMPLATES)


def test_entry_label_uses_operation_renderer():
    layout = dispatch_entry(log_types.UserEditImmediatelySentToServer(operation=make_op("A", author="alice")))
    assert render_entry_label(layout) == "操作 ⟨alice:A⟩ 被发送到服务器。"
    assert render_entry_label(layout, lambda op: op.meta.id.lower()) == "操作 a 被发送到服务器。"


def test_state_labels():
    assert render_state_label(dispatch_state(log_types.Synchronized(server_revision=3))) == "状态： 同步服务器版本 3"
    layout = dispatch_state(
        log_types.AwaitingOperationWithBuffer(
            awaited_operation=make_op("A", author="alice"), buffer=make_op("B", author="alice")
        )
    )
    assert render_state_label(layout) == "状态： 等待该操作 ⟨alice:A⟩ ，临时区： ⟨alice:B⟩"
