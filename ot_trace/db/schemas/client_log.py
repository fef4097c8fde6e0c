from enum import Enum
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, Field

from ot_trace.db.schemas.operation import Operation


class ClientEntryType(str, Enum):
    USER_EDIT_ADDED_TO_BUFFER = "USER_EDIT_ADDED_TO_BUFFER"
    USER_EDIT_IMMEDIATELY_SENT_TO_SERVER = "USER_EDIT_IMMEDIATELY_SENT_TO_SERVER"
    USER_EDIT_STORED_AS_BUFFER = "USER_EDIT_STORED_AS_BUFFER"
    RECEIVED_OWN_OPERATION = "RECEIVED_OWN_OPERATION"
    RECEIVED_OWN_OPERATION_AND_SENT_BUFFER = "RECEIVED_OWN_OPERATION_AND_SENT_BUFFER"
    RECEIVED_SERVER_OPERATION_WHILE_SYNCHRONIZED = "RECEIVED_SERVER_OPERATION_WHILE_SYNCHRONIZED"
    RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION = (
        "RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION"
    )
    RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION_WITH_BUFFER = (
        "RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION_WITH_BUFFER"
    )


class SynchronizationStateStatus(str, Enum):
    SYNCHRONIZED = "SYNCHRONIZED"
    AWAITING_OPERATION = "AWAITING_OPERATION"
    AWAITING_OPERATION_WITH_BUFFER = "AWAITING_OPERATION_WITH_BUFFER"


class UserEditAddedToBuffer(BaseModel):
    type: Literal["USER_EDIT_ADDED_TO_BUFFER"] = "USER_EDIT_ADDED_TO_BUFFER"


class UserEditImmediatelySentToServer(BaseModel):
    type: Literal["USER_EDIT_IMMEDIATELY_SENT_TO_SERVER"] = "USER_EDIT_IMMEDIATELY_SENT_TO_SERVER"
    operation: Operation


class UserEditStoredAsBuffer(BaseModel):
    type: Literal["USER_EDIT_STORED_AS_BUFFER"] = "USER_EDIT_STORED_AS_BUFFER"
    operation: Operation


class ReceivedOwnOperation(BaseModel):
    type: Literal["RECEIVED_OWN_OPERATION"] = "RECEIVED_OWN_OPERATION"
    acknowledged_operation: Operation


class ReceivedOwnOperationAndSentBuffer(BaseModel):
    type: Literal["RECEIVED_OWN_OPERATION_AND_SENT_BUFFER"] = "RECEIVED_OWN_OPERATION_AND_SENT_BUFFER"
    acknowledged_operation: Operation
    sent_buffer: Operation


class ReceivedServerOperationWhileSynchronized(BaseModel):
    type: Literal["RECEIVED_SERVER_OPERATION_WHILE_SYNCHRONIZED"] = (
        "RECEIVED_SERVER_OPERATION_WHILE_SYNCHRONIZED"
    )
    received_operation: Operation


class ReceivedServerOperationWhileAwaitingOperation(BaseModel):
    """A server operation conflicting with the operation we are waiting on.

    The four operations form a square: received/transformed received on the
    vertical sides, awaited/transformed awaited on the horizontal ones.
    """
    type: Literal["RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION"] = (
        "RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION"
    )
    received_operation: Operation
    transformed_received_operation: Operation
    awaited_operation: Operation
    transformed_awaited_operation: Operation


class ReceivedServerOperationWhileAwaitingOperationWithBuffer(BaseModel):
    """Same as the awaiting case, with a buffered operation forming a second square."""
    type: Literal["RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION_WITH_BUFFER"] = (
        "RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION_WITH_BUFFER"
    )
    received_operation: Operation
    once_transformed_received_operation: Operation
    twice_transformed_received_operation: Operation
    awaited_operation: Operation
    transformed_awaited_operation: Operation
    buffer_operation: Operation
    transformed_buffer_operation: Operation


ClientLogEntry = Annotated[
    Union[
        UserEditAddedToBuffer,
        UserEditImmediatelySentToServer,
        UserEditStoredAsBuffer,
        ReceivedOwnOperation,
        ReceivedOwnOperationAndSentBuffer,
        ReceivedServerOperationWhileSynchronized,
        ReceivedServerOperationWhileAwaitingOperation,
        ReceivedServerOperationWhileAwaitingOperationWithBuffer,
    ],
    Field(discriminator="type"),
]


class Synchronized(BaseModel):
    status: Literal["SYNCHRONIZED"] = "SYNCHRONIZED"
    server_revision: int


class AwaitingOperation(BaseModel):
    status: Literal["AWAITING_OPERATION"] = "AWAITING_OPERATION"
    awaited_operation: Operation


class AwaitingOperationWithBuffer(BaseModel):
    status: Literal["AWAITING_OPERATION_WITH_BUFFER"] = "AWAITING_OPERATION_WITH_BUFFER"
    awaited_operation: Operation
    buffer: Operation


SynchronizationState = Annotated[
    Union[Synchronized, AwaitingOperation, AwaitingOperationWithBuffer],
    Field(discriminator="status"),
]


class ClientLogItem(BaseModel):
    """One state transition of the OT client: what happened, and the state after it."""
    entry: ClientLogEntry
    new_state: SynchronizationState


ClientLog = List[ClientLogItem]
