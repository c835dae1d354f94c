#!/usr/bin/env python3
"""
Example shipping structured records to a local Loki from asyncio code
"""

import asyncio

from loki_logging import ClientConfig, LokiClient


async def handle_order(client: LokiClient, order_id: int) -> None:
    """Simulate an order workflow that logs each step"""
    await client.debug({"msg": "order received", "order_id": order_id})
    await asyncio.sleep(0.01)  # Simulate async work
    await client.info({"msg": "payment captured", "order_id": order_id, "amount": 99.99})

    if order_id % 5 == 0:
        await client.warn({"msg": "slow warehouse response", "order_id": order_id})


async def main():
    config = ClientConfig(
        push_url="http://localhost:3100/loki/api/v1/push",
        labels='{job="orders",env="dev"}',
        send_level="info",
        print_level="warn",
        batch_wait=1.0,
        batch_entries_number=20,
    )

    async with LokiClient(config) as client:
        await asyncio.gather(*(handle_order(client, n) for n in range(50)))
        await client.join()
        print(client.get_stats())


if __name__ == "__main__":
    asyncio.run(main())
