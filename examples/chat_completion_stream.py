"""Streaming example: a producer task feeds a bounded channel, the main task prints."""
import asyncio

from chatstream import (
    AsyncChatClient, ChatCompletionParams, DeliveryChannel, Done, Message,
)

messages = [
    Message.user(
        "Remember this phrase: In a field of horses, be a unicorn. "
        "I will ask you to repeat it."
    ),
    Message.user("What did I ask you to remember?"),
]


async def main() -> None:
    params = ChatCompletionParams(
        max_tokens=100,
        temperature=0.7,
        top_p=0.9,
        frequency_penalty=0.0,
        presence_penalty=0.0,
    )
    channel = DeliveryChannel(capacity=100)

    async with AsyncChatClient() as client:
        producer = asyncio.create_task(
            client.chat_completion_stream(messages, "gpt-3.5-turbo", params, channel)
        )
        while True:
            event = await channel.recv_event()
            if event is None or isinstance(event, Done):
                break
            print(event.text, end="", flush=True)
        print()
        summary = await producer

    print(f"[{summary.status}: {summary.deltas} deltas]")


asyncio.run(main())
