"""
One-time Failures Example

This example demonstrates single-use handlers under concurrent traffic:
1. Register a one-time 500 on top of a healthy endpoint
2. Fire several concurrent requests
3. Exactly one request sees the failure, the rest reach the healthy handler

Run: python examples/02-one-time-failures/main.py
"""

import asyncio
from collections import Counter

import httpx

from mockworker import EventNames, MockSettings, get, setup_worker


async def healthy(request: httpx.Request) -> httpx.Response:
    await asyncio.sleep(0.01)  # Simulate response composition
    return httpx.Response(200, json={"ok": True})


async def flaky(request: httpx.Request) -> httpx.Response:
    await asyncio.sleep(0.01)
    return httpx.Response(500, json={"error": "transient"})


async def main() -> None:
    worker = setup_worker(get("/book/:id", healthy), settings=MockSettings(quiet=True))
    worker.use(get("/book/:id", flaky, once=True))

    mocked: list[str] = []
    worker.events.on(
        EventNames.RESPONSE_MOCKED,
        lambda payload: mocked.append(payload["handler"].display_name),
    )

    async with worker.async_client(base_url="https://api.example.com") as client:
        responses = await asyncio.gather(*(client.get(f"/book/{i}") for i in range(5)))

    print("Status codes:", Counter(r.status_code for r in responses))
    print("Answered by:", Counter(mocked))
    print("Consumed:", [h.display_name for h in worker.list_handlers() if worker.is_consumed(h)])


if __name__ == "__main__":
    asyncio.run(main())
