from typing import Any, List

from pydantic import BaseModel, Field


class OperationMeta(BaseModel):
    """Identity of an edit.

    - id: shared by every transformed descendant of the same original edit
    - author: client that made the edit, only used to pick a colour
    """
    id: str
    author: str


class OperationWithoutPayload(BaseModel):
    """Operation identity plus its transformation chain, without the payload.

    - transformed_against: one identifier per transformation step, in order
    """
    meta: OperationMeta
    transformed_against: List[str] = Field(default_factory=list)


class Operation(OperationWithoutPayload):
    """An operation as the OT client logged it.

    - base: application-defined payload, never inspected by the core
    - revision: server revision, when known
    """
    base: Any = None
    revision: int | None = None

    def without_payload(self) -> OperationWithoutPayload:
        return OperationWithoutPayload(
            meta=self.meta.model_copy(),
            transformed_against=list(self.transformed_against),
        )
