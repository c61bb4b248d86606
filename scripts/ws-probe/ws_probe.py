import asyncio
import json
import os
import sys

import websockets
from dotenv import load_dotenv


async def probe(user_id: str):
    base = os.getenv("MESSENGER_WS_URL", "ws://localhost:3000/ws")
    async with websockets.connect(f"{base}?userId={user_id}") as ws:
        await ws.send(json.dumps({"type": "ping"}))

        async for message in ws:
            data = json.loads(message)
            print(data["type"], json.dumps(data.get("data", {})))

load_dotenv(dotenv_path='.env')
asyncio.run(probe(sys.argv[1] if len(sys.argv) > 1 else "1"))
