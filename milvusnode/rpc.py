"""Await a callback-style RPC: one call, one completion, one result.

A client handle exposes each remote operation as an attribute whose
``future(payload)`` starts the call and returns a future that fires
``add_done_callback`` once the call completes (the shape of gRPC's
unary-unary multicallables). ``invoke`` bridges that callback onto the
running asyncio loop.
"""
import asyncio
from typing import Any, Callable, Mapping, Protocol

__all__ = ["CallFuture", "CallbackOperation", "invoke"]


class CallFuture(Protocol):
    def add_done_callback(self, fn: Callable[["CallFuture"], None]) -> None:
        ...

    def result(self, timeout: float | None = None) -> Any:
        ...


class CallbackOperation(Protocol):
    def future(self, request: Any) -> CallFuture:
        ...


async def invoke(client: Any, method_name: str, payload: Mapping[str, Any]) -> Any:
    """
    Call ``method_name`` on ``client`` exactly once with ``payload``.

    Resolves with the value the call produced, unmodified. If the call
    fails, the exception it failed with is raised unmodified (for gRPC
    that is the ``grpc.RpcError`` call object). Application-level status
    codes inside a reply are not inspected.
    """
    # str() so enum members resolve by value, not by their enum hash.
    operation: CallbackOperation | None = getattr(client, str(method_name), None)
    if operation is None:
        raise ValueError(f"Client does not expose operation '{method_name}'")

    loop = asyncio.get_running_loop()
    outcome: asyncio.Future = loop.create_future()

    def _settle(setter: Callable[[Any], None], value: Any) -> None:
        # Settled already, or the awaiting task gave up (timeout/cancel).
        if outcome.done():
            return
        setter(value)

    def _on_done(call: CallFuture) -> None:
        # Runs on whichever thread completed the call; read the outcome now,
        # not when the loop gets to it.
        try:
            response = call.result()
        except Exception as exc:
            setter, value = outcome.set_exception, exc
        else:
            setter, value = outcome.set_result, response
        try:
            loop.call_soon_threadsafe(_settle, setter, value)
        except RuntimeError:
            # Loop closed; nobody is left to receive the result.
            pass

    operation.future(payload).add_done_callback(_on_done)
    return await outcome
