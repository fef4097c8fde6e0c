from typing import Callable, Dict

from ot_trace.db.schemas.operation import Operation
from ot_trace.db.schemas.trace import EntryLayout, StateLayout

OperationLabel = Callable[[Operation], str]

ENTRY_TEMPLATES: Dict[str, str] = {
    "user_edit_added_to_buffer": "新增用户操作到缓冲区",
    "user_edit_immediately_sent_to_server": "操作 {operation} 被发送到服务器。",
    "user_edit_stored_as_buffer": "操作 {operation} 被存储在缓冲区。",
    "received_own_operation": "收到自己的操作 {acknowledged_operation}.",
    "received_own_operation_and_sent_buffer": (
        "接收到自己的操作 {acknowledged_operation} ，等待区： {sent_buffer} 。"
    ),
    "received_server_operation_while_synchronized": (
        "接收到来自服务器的操作 {received_operation} 并且立即应用。"
    ),
    "received_server_operation_while_awaiting_operation": (
        "接收到的 {received_operation} 与自己发送的 {awaited_operation} 发生冲突，"
        "解决冲突后： {transformed_received_operation} 和 {transformed_awaited_operation} ."
    ),
    "received_server_operation_while_awaiting_operation_with_buffer": (
        "接收到的 {received_operation} 与自己发送的 {awaited_operation} 以及临时区 "
        "{buffer_operation} 发生冲突，解决冲突后： {twice_transformed_received_operation} "
        "与 {transformed_awaited_operation} ，新的临时区：{transformed_buffer_operation} ."
    ),
}

STATE_LABEL = "状态："

STATE_TEMPLATES: Dict[str, str] = {
    "synchronized": STATE_LABEL + " 同步服务器版本 {server_revision}",
    "awaiting_operation": STATE_LABEL + " 等待操作 {awaited_operation}",
    "awaiting_operation_with_buffer": STATE_LABEL + " 等待该操作 {awaited_operation} ，临时区： {buffer}",
}


def operation_label(operation: Operation) -> str:
    return f"⟨{operation.meta.author}:{operation.meta.id}⟩"


def render_entry_label(layout: EntryLayout, render_operation: OperationLabel = operation_label) -> str:
    template = ENTRY_TEMPLATES[layout.label_template]
    return template.format(**{name: render_operation(op) for name, op in layout.label_fields.items()})


def render_state_label(layout: StateLayout, render_operation: OperationLabel = operation_label) -> str:
    template = STATE_TEMPLATES[layout.label_template]
    fields = {name: render_operation(op) for name, op in layout.label_fields.items()}
    if layout.server_revision is not None:
        fields["server_revision"] = layout.server_revision
    return template.format(**fields)
