# scripts/load_test.py
"""
Fire concurrent joins and call-next requests at a running server and check
that no customer is called twice.

    python scripts/load_test.py [base_url]
"""
import asyncio
import sys

import httpx

BASE_URL = sys.argv[1] if len(sys.argv) > 1 else "http://127.0.0.1:8000"
CUSTOMERS = 20


async def join(client: httpx.AsyncClient, idx: int) -> None:
    phone = f"9{idx:09d}"
    r = await client.post(f"{BASE_URL}/api/queue", json={"name": f"Customer {idx}", "phone": phone})
    print(f"[join {idx}] -> {r.status_code}")


async def call_next(client: httpx.AsyncClient, token: str):
    r = await client.post(
        f"{BASE_URL}/api/queue/call-next",
        headers={"Authorization": f"Bearer {token}"},
    )
    if r.status_code != 200:
        return None
    return r.json()["customer"]["id"]


async def main():
    async with httpx.AsyncClient(timeout=10.0) as client:
        r = await client.post(
            f"{BASE_URL}/api/barber/login",
            json={"username": "barber", "password": "barber123"},
        )
        r.raise_for_status()
        token = r.json()["token"]

        await asyncio.gather(*[join(client, i) for i in range(CUSTOMERS)])
        called = await asyncio.gather(*[call_next(client, token) for _ in range(CUSTOMERS)])

    ids = [c for c in called if c is not None]
    print(f"called {len(ids)} customers, {len(set(ids))} distinct")
    if len(ids) != len(set(ids)):
        sys.exit("duplicate call detected")


if __name__ == "__main__":
    asyncio.run(main())
