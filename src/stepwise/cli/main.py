import asyncio
from typing import Optional

import typer
from langchain_core.messages import SystemMessage
from rich.console import Console

from stepwise.config import Config
from stepwise.config_provider import ConfigProvider
from stepwise.domain.content import has_content, is_assistant_message, message_text
from stepwise.domain.exceptions import StepwiseError
from stepwise.domain.halt import AWAIT_USER, HaltKind
from stepwise.domain.state import AgentState
from stepwise.engine.context import AgentContext, NextStage
from stepwise.engine.options import SequenceOptions
from stepwise.engine.sequence import Sequence, WorkflowResult, run_workflow
from stepwise.llm.chat_model import ChatModel
from stepwise.llm.heuristics import wants_to_exit
from stepwise.logging_utils import setup_logging

app = typer.Typer()
console = Console()

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant. Reply concisely."
RECOVERY_PROMPT = (
    "Your previous reply was empty or repeated itself. "
    "Continue toward the user's goal with a single, complete answer."
)


def build_chat_context(heuristic_model: ChatModel) -> AgentContext:
    """
    Builds the interactive chat contract.

    Every assistant turn finishes a stage. The next stage awaits user input
    unless the assistant asked to end the conversation.

    Args:
        heuristic_model: Model used for the exit classifier.

    Returns:
        The chat agent context.
    """
    exit_requested = wants_to_exit(heuristic_model)

    async def is_final(state: AgentState) -> bool:
        return True

    async def get_user_input(ctx: AgentContext, state: AgentState) -> str:
        return console.input("[bold cyan]You:[/bold cyan] ")

    async def controller(state: AgentState) -> AgentState:
        if state.halted is not None and state.halted.kind == HaltKind.TOOL_ERROR:
            console.print(f"[red]Error:[/red] {state.halted.error}")
            return state.halt(AWAIT_USER)
        return state.append(SystemMessage(content=RECOVERY_PROMPT))

    async def next_sequence(state: AgentState) -> Optional[NextStage]:
        last = state.last_message
        if last is not None and has_content(last.content) and await exit_requested(last.content):
            return None
        return NextStage(ctx=context, state=state.halt(AWAIT_USER))

    context = AgentContext(
        name="chat",
        is_final=is_final,
        get_user_input=get_user_input,
        controller=controller,
        next_sequence=next_sequence,
    )
    return context


def _print_assistant(state: AgentState) -> None:
    last = state.last_message
    if is_assistant_message(last) and has_content(last.content):
        console.print(f"[bold green]Agent:[/bold green] {message_text(last.content)}")


async def _run_chat(
    config: Config, system: str, max_steps: Optional[int], debug: bool
) -> WorkflowResult:
    model = ChatModel.from_config(config)
    heuristic_model = ChatModel.from_config(config, heuristic=True)
    state = AgentState(
        id="chat",
        model=model,
        messages=[SystemMessage(content=system)],
        memory={},
        halted=AWAIT_USER,
    )
    options = SequenceOptions(
        heuristic_model=heuristic_model,
        max_steps=max_steps,
        debug=debug,
        on_stop=_print_assistant,
    )
    return await run_workflow(Sequence(build_chat_context(heuristic_model), state, options))


@app.command()
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing file."),
):
    """
    Write a default configuration file (API keys are never written).
    """
    config = ConfigProvider().load()
    config_path = config.get_config_path()
    if config_path.exists() and not force:
        console.print("[yellow]Configuration already exists.[/yellow]")
        return
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(
        config.model_dump_json(indent=2, exclude={"openai_api_key"}), encoding="utf-8"
    )
    console.print(f"[green]Wrote configuration to {config_path}.[/green]")


@app.command()
def chat(
    system: str = typer.Option(
        DEFAULT_SYSTEM_PROMPT, "--system", "-s", help="System prompt for the session."
    ),
    max_steps: Optional[int] = typer.Option(
        None, "--max-steps", "-n", min=1, help="Step budget per turn."
    ),
    debug: bool = typer.Option(False, "--debug", help="Log a trace of every step."),
):
    """
    Chat with the agent until it ends the conversation (Ctrl-D to quit).
    """
    config = ConfigProvider().load()
    debug = debug or config.debug
    setup_logging("INFO" if debug else "WARNING")
    try:
        result = asyncio.run(
            _run_chat(
                config,
                system=system,
                max_steps=max_steps if max_steps is not None else config.max_steps,
                debug=debug,
            )
        )
    except (EOFError, KeyboardInterrupt):
        console.print("\n[yellow]Session closed.[/yellow]")
        return
    except StepwiseError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    halted = result.final.halted
    kind = halted.kind.value if halted else "running"
    console.print(
        f"[green]Session ended ({kind}) after {len(result.history)} turn(s).[/green]"
    )


if __name__ == "__main__":
    app()
