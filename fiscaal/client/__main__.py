"""
Terminal chat against a running Fiscaal.ai server.

    python -m fiscaal.client [BASE_URL]

Anonymous only: nothing is saved server-side. Ctrl-D or an empty line quits.
"""
import asyncio
import sys

import httpx

from fiscaal.client.chat_widget import ChatWidget

DEFAULT_BASE_URL = "http://localhost:8000"


async def main(base_url: str) -> None:
    print("Fiscaal.ai: Stel je belastingvraag in gewone taal.")
    async with httpx.AsyncClient(base_url=base_url, timeout=120.0) as http:
        widget = ChatWidget(http)
        while True:
            try:
                text = await asyncio.to_thread(input, "> ")
            except EOFError:
                break
            if not text.strip():
                break
            print("Denken...")
            reply = await widget.send(text)
            if reply is not None:
                print(reply.content)
                print()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_BASE_URL))
