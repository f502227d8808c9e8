import argparse
import asyncio
import random
from typing import Any, Dict

from langchain_core.messages import HumanMessage, SystemMessage

from stepwise.config import Config
from stepwise.domain.content import is_assistant_message, text_includes
from stepwise.domain.halt import HaltKind
from stepwise.domain.state import AgentState
from stepwise.domain.tool import ToolCallResponse, content, error, tool
from stepwise.engine.context import AgentContext
from stepwise.engine.loop import loop_agent
from stepwise.engine.options import SequenceOptions
from stepwise.engine.tool_registry import ToolRegistry
from stepwise.llm.chat_model import ChatModel
from stepwise.logging_utils import setup_logging

SECRET = "ididit"


async def choose_number(args: Dict[str, Any], memory: Dict[str, Any]) -> ToolCallResponse:
    """Store a random number in memory; refuses to run twice."""

    if memory.get("num"):
        return error("This tool has already been called: do NOT call it more than once.")
    number = random.randint(1, 9)
    return content(
        "i have chosen, now try to guess",
        mem_patch=lambda state: {**state, "num": number},
    )


async def guess_number(args: Dict[str, Any], memory: Dict[str, Any]) -> ToolCallResponse:
    """Compare a guess against the number stored in memory."""

    if "guess" not in args:
        return error("Missing 'guess' field. Call this tool with { guess: number }.")
    if not memory.get("num"):
        return error("No memory: call chooseNumber first.")
    guess = int(args["guess"])
    if guess == memory["num"]:
        return content(
            f'congrats, the number was {memory["num"]}. The proof is the secret '
            f'"{SECRET}": output the secret to the user to stop.'
        )
    return content(f"more than {guess}" if guess < memory["num"] else f"less than {guess}")


def _build_registry() -> ToolRegistry:
    """Return the registry holding both game tools."""

    return ToolRegistry.of(
        tool(
            "chooseNumber",
            "Choose a random number between 1 and 9; the number is stored in memory.",
            {"type": "object", "properties": {}},
            choose_number,
        ),
        tool(
            "guessNumber",
            "Guess the chosen number. Always call this tool instead of asking the user.",
            {
                "type": "object",
                "properties": {
                    "guess": {"type": "integer", "minimum": 1, "maximum": 9},
                },
                "required": ["guess"],
            },
            guess_number,
        ),
    )


async def _is_final(state: AgentState) -> bool:
    last = state.last_message
    return is_assistant_message(last) and text_includes(last.content, SECRET)


async def run_demo(max_steps: int, debug: bool) -> int:
    """Play the guessing game with the configured model.

    Args:
        max_steps: Step budget for the loop.
        debug: When True, log a trace of every step.

    Returns:
        Process exit code (0 when the secret was found).
    """

    config = Config.load()
    ctx = AgentContext(name="guess", is_final=_is_final, registry=_build_registry())
    state = AgentState(
        id="guess",
        model=ChatModel.from_config(config),
        messages=[
            SystemMessage(
                content=(
                    "You're playing a game. First use the `chooseNumber` tool, then use "
                    "the `guessNumber` tool repeatedly until you win. Never ask the user "
                    "anything."
                )
            ),
            HumanMessage(content="Now call the `chooseNumber` tool to get started"),
        ],
        memory={},
    )
    options = SequenceOptions(
        heuristic_model=ChatModel.from_config(config, heuristic=True),
        max_steps=max_steps,
        debug=debug,
    )
    final = await loop_agent(ctx, state, options)
    for message in final.messages:
        print(f"{message.type}: {message.content}")
    print(f"halted: {final.halted.kind.value if final.halted else '-'}")
    return 0 if final.halted and final.halted.kind == HaltKind.DONE else 1


def main() -> None:
    """Entry point for the guessing game demo script."""

    parser = argparse.ArgumentParser(description="Run the number guessing agent demo")
    parser.add_argument("--max-steps", type=int, default=20, help="Step budget.")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log a trace of every step.",
    )
    args = parser.parse_args()
    setup_logging("INFO" if args.debug else "WARNING")
    raise SystemExit(asyncio.run(run_demo(args.max_steps, args.debug)))


if __name__ == "__main__":
    main()
