"""Dream Playground CLI - typer application entry point."""

from __future__ import annotations

import asyncio
import atexit
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from dotenv import load_dotenv
from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dreamplayground.observability import (
    close_file_logging,
    configure_logging,
    get_logger,
    get_logs_dir,
)


def _is_interactive_tty() -> bool:
    """Check if stdin/stdout are connected to a TTY."""
    return sys.stdin.isatty() and sys.stdout.isatty()


# Load environment variables from .env file
load_dotenv()

if TYPE_CHECKING:
    from dreamplayground.config import DreamConfig
    from dreamplayground.models import ClarifyingQuestion, DreamAnalysis, GeneratedDream
    from dreamplayground.pipeline import ClarificationFlow, DreamClient, Stage

app = typer.Typer(
    name="dreamplay",
    help="Dream Playground: turn a dream description into a panorama and a reflection.",
    no_args_is_help=True,
)
console = Console()
log = get_logger(__name__)

STAGE_MESSAGES = {
    "clarify": "Finding a few questions about your dream...",
    "analyzing": "Reflecting on your dream...",
    "visualizing": "Painting your dreamscape...",
    "done": "Your dream is ready.",
}

BAR_WIDTH = 10


@app.callback()
def main(
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity: -v for INFO, -vv for DEBUG.",
        ),
    ] = 0,
    log_dir: Annotated[
        Path | None,
        typer.Option(
            "--log-dir",
            help="Write debug.jsonl logs into this directory.",
            envvar="DREAM_LOG_DIR",
        ),
    ] = None,
) -> None:
    """Dream Playground: turn a dream description into a panorama and a reflection."""
    if log_dir is not None:
        configure_logging(verbosity=verbose, log_to_file=True, log_dir=log_dir)
        atexit.register(close_file_logging)
        get_logger(__name__).info("file_logging_enabled", path=str(get_logs_dir()))
    else:
        configure_logging(verbosity=verbose)


@app.command()
def version() -> None:
    """Show version information."""
    from dreamplayground import __version__

    console.print(f"Dream Playground v{__version__}")


# =============================================================================
# Input
# =============================================================================


async def _ask(label: str) -> str:
    """Read one line of input without blocking the event loop.

    Uses prompt_toolkit on a terminal and plain prompts otherwise (pipes,
    tests). EOF and Ctrl+C count as an empty answer.
    """
    loop = asyncio.get_running_loop()

    def _prompt() -> str:
        if _is_interactive_tty():
            session: PromptSession[str] = PromptSession()
            with patch_stdout():
                text: str = session.prompt(HTML(f"<b><ansicyan>{label}</ansicyan></b>: "))
                return text
        return str(typer.prompt(label, default="", show_default=False))

    try:
        return await loop.run_in_executor(None, _prompt)
    except (EOFError, KeyboardInterrupt, typer.Abort):
        return ""


def _parse_selection(raw: str, choices: list[str]) -> list[str] | None:
    """Map ``"1, 3"`` to the numbered choices; None if not a selection."""
    picks: list[str] = []
    for token in raw.replace(",", " ").split():
        if not token.isdigit():
            return None
        index = int(token) - 1
        if not 0 <= index < len(choices):
            return None
        if choices[index] not in picks:
            picks.append(choices[index])
    return picks or None


def _show_question(number: int, question: ClarifyingQuestion) -> None:
    console.print()
    console.print(f"[bold]{number}. {question.question}[/bold]")
    if question.rationale:
        console.print(f"   [dim]{question.rationale}[/dim]")
    if question.has_choices and question.choices:
        for index, choice in enumerate(question.choices, start=1):
            console.print(f"   [cyan]{index}[/cyan]) {choice}")
        hint = "numbers, comma-separated" if question.multi else "a number"
        console.print(f"   [dim]Pick {hint}, type your own answer, or leave blank.[/dim]")


async def _collect_answers(flow: ClarificationFlow) -> None:
    """Ask every question; a blank answer leaves it unanswered."""
    console.print()
    console.print("[bold]A few questions[/bold] [dim](leave blank to skip)[/dim]")

    for number, question in enumerate(flow.questions, start=1):
        _show_question(number, question)
        raw = (await _ask("Answer")).strip()
        if not raw:
            continue

        picks = _parse_selection(raw, question.choices or []) if question.has_choices else None
        if picks is None:
            flow.set_answer(question.id, raw)
        elif question.multi:
            for option in picks:
                flow.toggle_choice(question.id, option)
        else:
            flow.choose(question.id, picks[0])

    flow.submit()


# =============================================================================
# Rendering
# =============================================================================


def _bar(value: float) -> str:
    filled = round(value * BAR_WIDTH)
    return "█" * filled + "░" * (BAR_WIDTH - filled)


def _bullets(items: list[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


def _render_analysis(analysis: DreamAnalysis) -> None:
    """Display the analysis panel by panel, skipping empty sections."""
    console.print()
    console.print(
        Panel.fit(
            analysis.summary or "[dim]No summary.[/dim]",
            title=f"Reflection [dim](confidence {analysis.confidence:.0%})[/dim]",
            title_align="left",
            border_style="magenta",
        )
    )

    if analysis.has_profile:
        profile = Table(show_header=False, box=None, padding=(0, 2))
        profile.add_column(style="cyan")
        profile.add_column()
        if analysis.sleep_stage:
            profile.add_row("Sleep stage", analysis.sleep_stage)
        if analysis.sensory_modalities:
            profile.add_row("Senses", ", ".join(analysis.sensory_modalities))
        if analysis.intensity is not None:
            profile.add_row("Intensity", f"{_bar(analysis.intensity)} {analysis.intensity:.0%}")
        console.print(Panel.fit(profile, title="Dream profile", title_align="left"))

    if analysis.emotions:
        console.print(f"  Emotions: [bold]{', '.join(analysis.emotions)}[/bold]")

    if analysis.themes:
        themes = Table(title="Themes", title_justify="left")
        themes.add_column("Theme", style="cyan")
        themes.add_column("Strength")
        themes.add_column("Notes", style="dim")
        for theme in analysis.themes:
            themes.add_row(
                theme.name, f"{_bar(theme.strength)} {theme.strength:.0%}", theme.description or ""
            )
        console.print(themes)

    if analysis.symbols:
        symbols = Table(title="Symbols", title_justify="left")
        symbols.add_column("Symbol", style="cyan")
        symbols.add_column("Meaning")
        symbols.add_column("Evidence", style="dim")
        for symbol in analysis.symbols:
            symbols.add_row(symbol.symbol, symbol.meaning, symbol.evidence or "")
        console.print(symbols)

    sections = [
        ("Likely factors", analysis.likely_factors),
        ("Suggestions", analysis.suggestions),
        ("Coping strategies", analysis.coping_strategies or []),
    ]
    for title, items in sections:
        if items:
            console.print(Panel.fit(_bullets(items), title=title, title_align="left"))

    if analysis.narrative:
        console.print(
            Panel(analysis.narrative, title="Narrative", title_align="left", border_style="dim")
        )


def _render_dream(dream: GeneratedDream) -> None:
    """Display the title, image details and scene plan."""
    console.print()
    console.print(f"[bold green]✓[/bold green] [bold]{dream.title}[/bold]")
    console.print(
        f"  Panorama: {dream.image.content_type}, {dream.image.size_bytes:,} bytes"
    )

    if not dream.scene_objects:
        console.print("  [dim]No scene plan.[/dim]")
        return

    table = Table(title="Scene plan", title_justify="left")
    table.add_column("Id", style="cyan")
    table.add_column("Shape")
    table.add_column("Position", style="dim")
    table.add_column("Color")
    table.add_column("Animation", style="dim")
    for obj in dream.scene_objects:
        x, y, z = obj.position
        table.add_row(
            obj.id or "-",
            obj.type,
            f"({x:.1f}, {y:.1f}, {z:.1f})",
            f"[{obj.color}]■[/] {obj.color}",
            obj.animation,
        )
    console.print(table)


def _save_image(dream: GeneratedDream, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dream.image.image_data)
    log.info("image_saved", path=str(path), size_bytes=dream.image.size_bytes)
    console.print(f"  Saved panorama to [bold]{path}[/bold]")


# =============================================================================
# Dream command
# =============================================================================


def _build_client(config: DreamConfig) -> DreamClient:
    """Create the remote client for the configured providers."""
    from dreamplayground.pipeline import DreamClient
    from dreamplayground.providers import (
        chat_model_factory,
        create_image_provider,
        parse_provider_spec,
    )

    provider_name, _ = parse_provider_spec(config.provider)
    return DreamClient(
        chat_model_factory(config.provider),
        create_image_provider(config.image_provider),
        max_questions=config.max_questions,
        provider_name=provider_name,
    )


def _on_transition(old: Stage, new: Stage) -> None:
    message = STAGE_MESSAGES.get(new.value)
    if message:
        console.print(f"[dim]{message}[/dim]")


async def _run_dream(
    client: DreamClient,
    description: str | None,
    skip_questions: bool,
    save_image: Path | None,
) -> bool:
    """Run one session through every stage. Returns True if visualized."""
    from dreamplayground.pipeline import ClarifyState, DreamOrchestrator, Stage

    orchestrator = DreamOrchestrator(client, on_transition=_on_transition)

    while True:
        text = description if description is not None else await _ask("Describe your dream")
        description = None
        if orchestrator.submit(text):
            break
        console.print(f"[yellow]{orchestrator.state.error}[/yellow]")
        if not _is_interactive_tty():
            return False

    if skip_questions:
        await orchestrator.complete_clarification([])
    else:
        flow = await orchestrator.load_questions()
        if flow.state is ClarifyState.AWAITING_ANSWERS:
            await _collect_answers(flow)
        await orchestrator.complete_flow(flow)

    state = orchestrator.state
    if state.analysis is not None:
        _render_analysis(state.analysis)
    if state.error:
        console.print()
        console.print(f"[yellow]{state.error}[/yellow]")

    if state.stage is not Stage.DONE or state.generated_dream is None:
        return False

    _render_dream(state.generated_dream)
    if save_image is not None:
        _save_image(state.generated_dream, save_image)
    return True


@app.command()
def dream(
    description: Annotated[
        str | None,
        typer.Argument(help="Dream description. Prompted for when omitted."),
    ] = None,
    provider: Annotated[
        str | None,
        typer.Option("--provider", help="Text model as provider/model (e.g., openai/gpt-5-mini)."),
    ] = None,
    image_provider: Annotated[
        str | None,
        typer.Option(
            "--image-provider",
            help="Panorama backend as provider/model, or 'placeholder'.",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file (default: ./dreamplayground.yaml)."),
    ] = None,
    save_image: Annotated[
        Path | None,
        typer.Option("--save-image", help="Write the panorama to this file."),
    ] = None,
    skip_questions: Annotated[
        bool,
        typer.Option("--skip-questions", help="Go straight to analysis."),
    ] = False,
) -> None:
    """Describe a dream, answer a few questions, and get a reflection and a dreamscape."""
    from dreamplayground.config import ConfigError, load_config
    from dreamplayground.providers import ImageProviderError, ProviderError

    try:
        config = load_config(config_path).with_overrides(
            provider=provider, image_provider=image_provider
        )
        client = _build_client(config)
    except (ConfigError, ProviderError, ImageProviderError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None

    log.info(
        "dream_started",
        provider=config.provider,
        image_provider=config.image_provider,
        skip_questions=skip_questions,
    )
    ok = asyncio.run(_run_dream(client, description, skip_questions, save_image))
    if not ok:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
