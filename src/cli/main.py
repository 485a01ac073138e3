"""
Typer CLI for the kinderquiz session engine.

Commands:
    kinderquiz modules      - List learning modules and their fallback sets
    kinderquiz check-ai     - Probe the configured text-generation provider
    kinderquiz play         - Play one quiz in the terminal

Usage:
    kinderquiz --help
    kinderquiz play --name Mia --age 5 --module letters
    kinderquiz play --name Mia --age 5 --module numbers --seed 42 --memory
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt
from rich.table import Table

from config import get_settings
from src.content.modules import MODULES, module_keys
from src.content.question_bank import QuestionBank
from src.core.identity import StaticIdentity
from src.core.log_config import setup_logging
from src.core.models import AnalyticsReport
from src.generation.transport import build_text_generator, check_connection
from src.persistence.sql_store import SqlRecordStore
from src.persistence.store import InMemoryRecordStore, RecordStore
from src.persistence.writer import PersistenceWriter
from src.session.context import SessionContext
from src.session.state_machine import QuizSession, SessionState

app = typer.Typer(
    help="kinderquiz: adaptive quiz sessions for young learners",
    no_args_is_help=True,
)
console = Console()

STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "info": "bold cyan",
    "dim": "dim",
}


# =============================================================================
# Rendering
# =============================================================================


def _render_question(quiz: QuizSession) -> None:
    snap = quiz.snapshot()
    question = snap.current_question
    title = f"{snap.module_title} - {'practice ' if snap.practice else ''}question {snap.question_index + 1}/{snap.question_count}"

    body = f"[bold]{question.prompt}[/bold]\n\n" + "\n".join(
        f"  [cyan]{number}.[/cyan] {option}" for number, option in enumerate(question.options, start=1)
    )
    console.print(Panel(body, title=title, border_style="cyan"))


def _render_report(report: AnalyticsReport) -> None:
    table = Table(title="Learning Report", show_header=False, box=None)
    table.add_column("Section", style=STYLES["info"])
    table.add_column("Details")

    sections = [
        ("Strengths", report.strengths),
        ("Keep practicing", report.improvement_areas),
        ("Try next", report.recommended_topics),
        ("Tips", report.tips),
    ]
    for name, items in sections:
        table.add_row(name, "\n".join(f"• {item}" for item in items))

    console.print(table)
    console.print(f"[dim]Report source: {report.source}[/dim]")


# =============================================================================
# Quiz loop
# =============================================================================


async def _play_round(quiz: QuizSession) -> None:
    while quiz.state == SessionState.QUIZ_IN_PROGRESS:
        _render_question(quiz)
        choice = IntPrompt.ask("Your answer", choices=["1", "2", "3", "4"])
        outcome = quiz.answer(choice - 1)

        await quiz.await_feedback()
        style = STYLES["correct"] if outcome.is_correct else STYLES["incorrect"]
        console.print(f"[{style}]{quiz.feedback_text}[/{style}]")
        if not outcome.is_correct:
            console.print(f"[dim]The answer was: {outcome.question.correct_option}[/dim]")
        for achievement in sorted(outcome.new_achievements):
            console.print(f"[bold yellow]🏆 {achievement}[/bold yellow]")
        for unlock in sorted(outcome.new_unlocks):
            console.print(f"[bold magenta]🎮 Unlocked: {unlock}[/bold magenta]")

        quiz.advance()


async def _open_context(
    name: str, age: int, store: RecordStore, seed: Optional[int]
) -> SessionContext:
    settings = get_settings()
    identity = StaticIdentity(settings.local_user_id)
    kwargs = {}
    if seed is not None:
        kwargs = {"seed_source": lambda: seed, "feedback_seed": seed}

    listed = await PersistenceWriter(store, identity).attempt(
        "list_children", lambda s, owner: s.list_children(owner)
    )
    for child in listed.value if listed.ok else []:
        if child.name.lower() == name.lower():
            return await SessionContext.load(child.id, store, identity, settings=settings, **kwargs)
    return await SessionContext.for_new_child(name, age, store, identity, settings=settings, **kwargs)


async def _play(name: str, age: int, module: str, seed: Optional[int], memory: bool) -> None:
    store = InMemoryRecordStore() if memory else SqlRecordStore.from_url()
    context = await _open_context(name, age, store, seed)
    quiz = QuizSession(context)

    try:
        with console.status("Getting questions ready..."):
            await quiz.select_module(module, seed=seed)
        source = quiz.snapshot().content_source
        console.print(f"\n[bold cyan]Hi {context.child_name}![/bold cyan] [dim]({source} questions)[/dim]\n")

        while True:
            await _play_round(quiz)
            with console.status("Looking at how you did..."):
                report = await quiz.complete()

            ledger = quiz.ledger
            console.print(
                f"\n[bold]Points:[/bold] {ledger.total_points}   "
                f"[bold]Correct:[/bold] {ledger.correct_answers}/{ledger.total_answers}   "
                f"[bold]Streak:[/bold] {ledger.current_streak}\n"
            )
            _render_report(report)

            if not quiz.missed or not Confirm.ask("Practice the ones you missed?", default=True):
                break
            quiz.start_practice()
    finally:
        quiz.go_home()
        await quiz.close()
        failures = quiz.context.writer.failures
        if failures:
            logger.warning(f"{len(failures)} progress write(s) failed; progress kept in memory only")
        await context.aclose()
        if isinstance(store, SqlRecordStore):
            store.dispose()


# =============================================================================
# Commands
# =============================================================================


@app.command()
def modules() -> None:
    """List learning modules."""
    bank = QuestionBank()
    table = Table(title="Learning Modules")
    table.add_column("Key", style="cyan")
    table.add_column("Title")
    table.add_column("Offline sets", justify="right")

    for key in module_keys():
        table.add_row(key, MODULES[key].title, str(bank.set_count(key)))
    console.print(table)


@app.command("check-ai")
def check_ai() -> None:
    """Send a tiny request to the configured provider and report the result."""
    settings = get_settings()
    generator = build_text_generator(settings)
    result = asyncio.run(check_connection(generator))

    if result["success"]:
        console.print(f"[green]✓[/green] {generator.name} is working")
        console.print(f"[dim]{result['response']}[/dim]")
    else:
        console.print(f"[red]✗[/red] {result['error']}")
        raise typer.Exit(code=1)


@app.command()
def play(
    name: str = typer.Option(..., "--name", "-n", help="Child's name"),
    age: int = typer.Option(5, "--age", "-a", min=0, help="Child's age"),
    module: str = typer.Option("letters", "--module", "-m", help="Module key (see `modules`)"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Fixed seed for reproducible content"),
    memory: bool = typer.Option(False, "--memory", help="Keep progress in memory only"),
) -> None:
    """Play one quiz in the terminal."""
    if module not in module_keys():
        raise typer.BadParameter(f"Unknown module '{module}'. Choose from: {', '.join(module_keys())}")
    asyncio.run(_play(name, age, module, seed, memory))


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    setup_logging(level="WARNING")
    app()


if __name__ == "__main__":
    main()
