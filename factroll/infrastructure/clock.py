import asyncio
from factroll.domain.ports.agent_runner_port import ClockPort


class AsyncioClock(ClockPort):
    """ClockPort backed by asyncio.sleep."""

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
