"""Non-streaming chat completion example."""
from chatstream import ChatClient, ChatCompletionParams, Message

messages = [
    Message.user(
        "Remember this phrase: In a field of horses, be a unicorn. "
        "I will ask you to repeat it."
    ),
    Message.user("What did I ask you to remember?"),
]

with ChatClient() as client:
    response = client.chat_completion(
        messages,
        "gpt-3.5-turbo",
        ChatCompletionParams(max_tokens=100, temperature=0.7, top_p=0.9),
    )

print(response["choices"][0]["message"]["content"])
