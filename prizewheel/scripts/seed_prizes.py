#!/usr/bin/env python3
"""
Seed script to create a starter prize catalog for local development
"""
import asyncio

from prizewheel.db.session import async_session
from prizewheel.repos.prize_repo import create_prize, get_all_prizes

SAMPLE_PRIZES = [
    {
        "name": "Exclusive Video",
        "emoji": "🎬",
        "position": 1,
        "weight_basic": 6,
        "weight_gold": 4,
        "weight_vip": 2,
        "delivery_content": "https://example.com/videos/exclusive",
    },
    {
        "name": "Signed Photo",
        "emoji": "🖼️",
        "position": 2,
        "weight_basic": 3,
        "weight_gold": 4,
        "weight_vip": 3,
        "is_tier_specific": True,
        "delivery_content_basic": "https://example.com/photos/basic",
        "delivery_content_gold": "https://example.com/photos/gold",
        "delivery_content_vip": "https://example.com/photos/vip",
    },
    {
        "name": "Discount Code",
        "emoji": "🏷️",
        "position": 3,
        "weight_basic": 4,
        "weight_gold": 2,
        "delivery_content": "WHEEL-10-OFF",
    },
    {
        "name": "Personal Video Call",
        "emoji": "📞",
        "position": 4,
        "fulfillment_type": "manual",
        "weight_gold": 1,
        "weight_vip": 3,
        "delivery_content": "Agree a time with the winner and send the call link.",
    },
]


async def run() -> int:
    """Create the sample catalog unless prizes already exist"""
    async with async_session() as db:
        if await get_all_prizes(db):
            print("Catalog already has prizes, nothing seeded")
            return 0

        for values in SAMPLE_PRIZES:
            prize = await create_prize(db, dict(values))
            print(f"Seeded {prize.emoji} {prize.name} ({prize.id})")
        return len(SAMPLE_PRIZES)


if __name__ == "__main__":
    asyncio.run(run())
