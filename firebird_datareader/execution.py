"""
Copyright (c) Microsoft Corporation.
Licensed under the MIT license.
This module contains the execution strategy shared by the synchronous and asynchronous reader APIs.

Every reader operation that may wait on the engine is written once, as a coroutine that takes
an ExecutionStrategy. The asynchronous API awaits it under ASYNC; the synchronous API drives it
under SYNC with run_sync(), where collaborator calls complete without ever suspending.
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine, TypeVar

from firebird_datareader.exceptions import InternalError
from firebird_datareader.logging import logger

T = TypeVar("T")


class ExecutionStrategy(Enum):
    """
    How a reader operation runs.

    SYNC runs every collaborator call to completion on the calling thread.
    ASYNC awaits the collaborator's coroutine, observing task cancellation.
    """

    SYNC = "sync"
    ASYNC = "async"

    @property
    def is_async(self) -> bool:
        return self is ExecutionStrategy.ASYNC

    async def call(
        self,
        sync_fn: Callable[..., T],
        async_fn: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> T:
        """
        Invoke the collaborator method matching this strategy.

        Args:
            sync_fn: Blocking variant, used under SYNC.
            async_fn: Coroutine variant, awaited under ASYNC.
            *args: Arguments passed to whichever variant runs.
        """
        if self.is_async:
            return await async_fn(*args)
        return sync_fn(*args)

    async def call_cancellable(
        self,
        sync_fn: Callable[..., T],
        async_fn: Callable[..., Awaitable[T]],
        cancel_fn: Callable[[], Any],
        *args: Any,
    ) -> T:
        """
        Like call(), but a cancellation delivered while awaiting asks the
        collaborator to abort the pending operation before propagating.

        Raises:
            asyncio.CancelledError: When the awaiting task is cancelled.
        """
        if not self.is_async:
            return sync_fn(*args)
        try:
            return await async_fn(*args)
        except asyncio.CancelledError:
            logger.debug("Cancellation received, aborting pending engine operation")
            cancel_fn()
            raise

    async def call_uncancellable(
        self,
        sync_fn: Callable[..., T],
        async_fn: Callable[..., Awaitable[T]],
        *args: Any,
    ) -> T:
        """
        Like call(), but the collaborator coroutine runs to completion even if
        the awaiting task is cancelled. Used for resource teardown.
        """
        if not self.is_async:
            return sync_fn(*args)
        return await asyncio.shield(async_fn(*args))

    async def run_uncancellable(self, coro: Coroutine[Any, Any, T]) -> T:
        """
        Await a whole strategy coroutine so that cancelling the awaiting task
        does not interrupt it. Under ASYNC the coroutine keeps running as its
        own task after the caller sees CancelledError.
        """
        if not self.is_async:
            return await coro
        return await asyncio.shield(coro)


def run_sync(coro: Coroutine[Any, Any, T]) -> T:
    """
    Drive a coroutine started under ExecutionStrategy.SYNC to completion.

    Under SYNC no collaborator call suspends, so the coroutine finishes on its
    first step.

    Raises:
        InternalError: If the coroutine tries to suspend.
    """
    try:
        coro.send(None)
    except StopIteration as stop:
        return stop.value
    coro.close()
    raise InternalError("A synchronous reader operation attempted to suspend.")
