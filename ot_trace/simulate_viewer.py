import asyncio
import json
import websockets
from ot_trace.db import models
from ot_trace.db.crud.trace import append_log_item, create_trace
from ot_trace.db.schemas.client_log import ClientLogItem
from ot_trace.db.schemas.trace import TraceCreate
from ot_trace.db.session import SessionLocal, engine

WS_URL = "ws://localhost:8000/ws/traces/{trace_id}"


def op(op_id, author, transformed_against=(), base=None):
    return {
        "meta": {"id": op_id, "author": author},
        "transformed_against": list(transformed_against),
        "base": base,
    }


def seed_trace():
    """Store a small log: alice edits, bob's edit arrives while alice waits."""
    models.Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        trace = create_trace(
            session,
            TraceCreate(title="simulated", initial_state={"status": "SYNCHRONIZED", "server_revision": 0}),
        )
        mine = op("a1", "alice", base="insert 'Hello' at 0")
        theirs = op("b1", "bob", base="insert 'World' at 0")
        items = [
            {
                "entry": {"type": "USER_EDIT_IMMEDIATELY_SENT_TO_SERVER", "operation": mine},
                "new_state": {"status": "AWAITING_OPERATION", "awaited_operation": mine},
            },
            {
                "entry": {
                    "type": "RECEIVED_SERVER_OPERATION_WHILE_AWAITING_OPERATION",
                    "received_operation": theirs,
                    "transformed_received_operation": op("b1", "bob", ["a1"], "insert 'World' at 5"),
                    "awaited_operation": mine,
                    "transformed_awaited_operation": op("a1", "alice", ["b1"], "insert 'Hello' at 0"),
                },
                "new_state": {
                    "status": "AWAITING_OPERATION",
                    "awaited_operation": op("a1", "alice", ["b1"], "insert 'Hello' at 0"),
                },
            },
        ]
        for item in items:
            append_log_item(session, trace.id, ClientLogItem(**item))
        return trace.id
    finally:
        session.close()


async def viewer(name, trace_id, units):
    async with websockets.connect(WS_URL.format(trace_id=trace_id)) as ws:
        init_data = json.loads(await ws.recv())
        print(f"{name} received init with {len(init_data['units'])} units")

        for unit in units:
            for event_type in ("pointer_enter", "pointer_leave"):
                await ws.send(json.dumps({"type": event_type, "unit": unit}))
                resp = json.loads(await ws.recv())
                open_units = [u["key"] for u in resp.get("units", [])]
                print(f"{name} {event_type} {unit}: open tooltips {open_units}")


async def main():
    trace_id = seed_trace()
    # Two viewers of the same trace never see each other's hover state
    await asyncio.gather(
        viewer("ViewerA", trace_id, ["log-entry-2/diagram/2", "log-entry-1/label/operation"]),
        viewer("ViewerB", trace_id, ["log-entry-2/diagram/1"]),
    )


if __name__ == "__main__":
    asyncio.run(main())
