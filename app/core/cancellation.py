# core/cancellation.py
import asyncio
from typing import Optional


class CancellationToken:
    """
    Cooperative shutdown signal shared by the queue consumers.

    Signalled once; every suspend point (long poll, sleeps) waits on it
    so loops stop promptly without aborting in-flight message handling.
    """

    def __init__(self):
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, seconds: Optional[float]) -> bool:
        """
        Sleep for `seconds` unless cancelled first.

        Returns:
            bool: True if the token was cancelled before or during the sleep
        """
        if self.cancelled:
            return True
        if not seconds or seconds <= 0:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False
