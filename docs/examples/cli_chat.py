import asyncio
import os
from typing import Annotated, List

from dotenv import load_dotenv
from openai import AsyncOpenAI
from pydantic import Field

from llm_tool_orchestrator import OpenAIChatModel, ToolRegistry, UserMessage, run_conversation
from llm_tool_orchestrator.llm_core import ConversationMessage, OrchestratorConfig, setup_logging

# Load environment variables
load_dotenv()

registry = ToolRegistry()


@registry.tool
def multiply(
    a: Annotated[float, Field(description="The first factor.")],
    b: Annotated[float, Field(description="The second factor.")],
) -> float:
    """Multiply two numbers and return the product."""
    return a * b


async def main() -> None:
    """
    Run a CLI chat against OpenAI with a multiply tool available.
    """
    print("Welcome to the CLI Chat (OpenAI)!")

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        print("Error: OPENAI_API_KEY not found in environment variables.")
        return

    setup_logging(os.getenv("LOG_LEVEL", "WARNING"))
    config = OrchestratorConfig.from_env()
    model = OpenAIChatModel(
        client=AsyncOpenAI(api_key=api_key),
        model_name=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
        sys_instruction="You are a helpful assistant. Use the tools for arithmetic.",
    )

    history: List[ConversationMessage] = []

    print("\nStart chatting! Type 'exit' or 'quit' to stop.")
    while True:
        user_input = input("\nYou: ").strip()
        if user_input.lower() in ["exit", "quit"]:
            print("Goodbye!")
            break

        if not user_input:
            continue

        try:
            result = await run_conversation(
                model, history + [UserMessage(content=user_input)], registry, max_iterations=5, config=config
            )
        except Exception as e:
            print(f"An error occurred: {e}")
            continue

        if result.completed:
            print(f"Assistant: {result.content}")
        else:
            print(f"[conversation ended: {result.status.value}]")
        history = result.history


if __name__ == "__main__":
    asyncio.run(main())
