"""Main entry point for HAL Coder."""

import asyncio
import json
import os
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from hal_coder.agent import Agent
from hal_coder.coder import (
    AnalysisReceived,
    CoderConfig,
    CoderEvent,
    JuniorExecutionError,
    JuniorFinished,
    JuniorThinking,
    JuniorToolCallAttempted,
    JuniorToolCallCompleted,
    ProPlanReceived,
    SessionEnded,
    SessionFailed,
    run_coder_session,
)
from hal_coder.config import Config, ModelConfig, get_config, set_config
from hal_coder.llm import CompletionModel, Message, create_provider
from hal_coder.logging import configure_logging, log
from hal_coder.prompts import JUNIOR_PROMPT, PRO_PROMPT
from hal_coder.tools import build_default_registry

app = typer.Typer(help="HAL Coder - a Pro/Junior agentic coding assistant")
console = Console()

EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit"}


def _provider_from(model_cfg: ModelConfig) -> CompletionModel:
    return create_provider(
        provider=model_cfg.provider,
        model=model_cfg.model,
        api_key=model_cfg.api_key or None,
        base_url=model_cfg.base_url or None,
        temperature=model_cfg.temperature,
        max_tokens=model_cfg.max_tokens,
    )


def build_coder_config(cfg: Config) -> tuple[CoderConfig, list[CompletionModel]]:
    """Create both agents and the session config from loaded settings."""
    pro_model = _provider_from(cfg.agents.pro)
    junior_model = _provider_from(cfg.agents.junior)
    pro_agent = Agent(
        pro_model,
        preamble=PRO_PROMPT,
        temperature=cfg.agents.pro.temperature,
        max_tokens=cfg.agents.pro.max_tokens,
        name="pro",
    )
    junior_agent = Agent(
        junior_model,
        preamble=JUNIOR_PROMPT,
        tools=build_default_registry(config=cfg),
        temperature=cfg.agents.junior.temperature,
        max_tokens=cfg.agents.junior.max_tokens,
        name="junior",
    )
    return CoderConfig.from_settings(pro_agent, junior_agent, cfg.coder), [pro_model, junior_model]


def render_event(event: CoderEvent, out: Console | None = None) -> None:
    """Print one session event."""
    out = out or console
    if isinstance(event, ProPlanReceived):
        out.print(Panel(escape(event.plan), title="Tech Lead Plan", border_style="cyan"))
    elif isinstance(event, JuniorThinking):
        out.print(Panel(escape(event.text), title="Junior Thought", border_style="blue"))
    elif isinstance(event, JuniorToolCallAttempted):
        args = json.dumps(event.call.arguments, indent=2, default=str)
        out.print(Panel(escape(f"Tool: {event.call.name}\nArgs: {args}"), title="Junior Tool Call", border_style="magenta"))
    elif isinstance(event, JuniorToolCallCompleted):
        out.print(Panel(escape(event.result), title=f"Junior Tool Result ({event.tool_name})", border_style="green"))
    elif isinstance(event, JuniorExecutionError):
        out.print(f"[bold red]Junior error:[/bold red] {escape(event.error)}")
    elif isinstance(event, JuniorFinished):
        out.print(f"[green]Junior finished:[/green] {escape(event.summary)}")
    elif isinstance(event, AnalysisReceived):
        out.print(Panel(escape(event.analysis), title="Tech Lead Analysis", border_style="cyan"))
    elif isinstance(event, SessionEnded):
        out.print("[bold green]--- Coder session complete ---[/bold green]")
    elif isinstance(event, SessionFailed):
        out.print(f"[bold red]Session failed:[/bold red] {escape(event.error)}")


async def run_turn(config: CoderConfig, user_input: str, history: list[Message]) -> list[Message]:
    """Run one session and return the Pro history to carry forward.

    A failed session keeps the previous history so the user can retry.
    """
    session = run_coder_session(config, user_input, history)
    try:
        async for event in session:
            render_event(event)
            if isinstance(event, SessionEnded):
                return list(event.history)
            if isinstance(event, SessionFailed):
                return history
    finally:
        await session.aclose()
    console.print("[yellow]Coder session stream ended unexpectedly.[/yellow]")
    return history


async def run_interactive() -> None:
    """Run the interactive coder loop."""
    coder_config, models = build_coder_config(get_config())
    history: list[Message] = []
    console.print("[bold]Welcome to HAL Coder.[/bold] Type 'exit' to quit.")
    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(console.input, "[bold]> [/bold]")).strip()
            except EOFError:
                log.info("EOF received")
                break
            if user_input.lower() in EXIT_COMMANDS:
                break
            if not user_input:
                continue
            history = await run_turn(coder_config, user_input, history)
    finally:
        for model in models:
            close = getattr(model, "close", None)
            if close is not None:
                await close()


def main(
    config: str = "",
    pro_model: str = "",
    junior_model: str = "",
    max_iterations: int = 0,
    verbose: bool = False,
) -> None:
    """Start a HAL Coder interactive session."""
    if verbose:
        os.environ["HAL_LOGGING__LEVEL"] = "DEBUG"

    if config:
        try:
            cfg = Config.from_yaml(Path(config))
        except Exception as e:
            log.error("Failed to load config", error=str(e))
            cfg = Config.load()
    else:
        cfg = Config.load()

    if pro_model:
        cfg.agents.pro.model = pro_model
    if junior_model:
        cfg.agents.junior.model = junior_model
    if max_iterations > 0:
        cfg.coder.max_junior_iterations = max_iterations
    if verbose:
        cfg.logging.level = "DEBUG"

    set_config(cfg)
    configure_logging()

    try:
        asyncio.run(run_interactive())
    except KeyboardInterrupt:
        log.info("Shutting down...")
        sys.exit(0)
    except Exception as e:
        log.error("Fatal error", error=str(e))
        sys.exit(1)


@app.command()
def run(
    config: str = typer.Option("", "-c", "--config", help="Path to config file"),
    pro_model: str = typer.Option("", "--pro-model", help="Override the Pro model"),
    junior_model: str = typer.Option("", "--junior-model", help="Override the Junior model"),
    max_iterations: int = typer.Option(0, "-n", "--max-iterations", help="Override the Junior iteration cap"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Debug logging"),
) -> None:
    main(config, pro_model, junior_model, max_iterations, verbose)


@app.command()
def version() -> None:
    """Show version information."""
    from hal_coder import __version__
    console.print(f"HAL Coder v{__version__}")


if __name__ == "__main__":
    app()
