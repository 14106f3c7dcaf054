"""
Typer CLI for the memory-recall service.

Commands:
    recall serve              - Start the API server
    recall db init            - Initialize database tables
    recall memories list      - List logged memories
    recall memories add       - Log a new memory
    recall memories stats     - Memory counts by category
    recall quiz               - Take a recall quiz in the terminal
    recall progress           - Show score history and trend
    recall feedback           - Coaching feedback on recent tests
    recall status             - Check Ollama availability

Usage:
    recall --help
    recall memories list --category travel --limit 10
    recall quiz --count 5
"""

from __future__ import annotations

from datetime import timedelta
from typing import Optional

import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from config import get_settings
from recall.core import configure_logging

app = typer.Typer(
    help="memory-recall CLI: log memories, take recall quizzes, track progress",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
) -> None:
    """Memory journal with locally generated recall quizzes."""
    configure_logging(level="DEBUG" if verbose else "WARNING")


# ========================================
# SERVER
# ========================================


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Auto-reload on code changes"),
) -> None:
    """Start the API server with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "recall.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
    )


# ========================================
# DATABASE COMMANDS
# ========================================

db_app = typer.Typer(help="Database management")
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """
    Initialize database tables from SQLAlchemy models.

    Safe to run multiple times (idempotent).
    """
    from recall.db.database import init_db

    logger.info("Initializing database tables...")
    init_db()
    rprint("[green]✓[/green] Database initialized!")


# ========================================
# MEMORY COMMANDS
# ========================================

memories_app = typer.Typer(help="Memory journal")
app.add_typer(memories_app, name="memories")


@memories_app.command("list")
def memories_list(
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Filter by category"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Search title and description"),
    limit: int = typer.Option(20, "--limit", "-n", help="Maximum rows"),
) -> None:
    """List memories, newest first."""
    from recall.db.database import session_scope
    from recall.db.memory_store import MemoryStore

    with session_scope() as session:
        memories = MemoryStore(session).list_memories(category=category, search=search, limit=limit)

        if not memories:
            rprint("[yellow]No memories found.[/yellow]")
            return

        table = Table(title=f"Memories ({len(memories)})")
        table.add_column("ID", justify="right", style="cyan")
        table.add_column("Logged", style="dim")
        table.add_column("Category", style="magenta")
        table.add_column("Title", style="bold")
        table.add_column("Tags")
        for m in memories:
            table.add_row(
                str(m.id),
                m.date_logged.strftime("%Y-%m-%d") if m.date_logged else "-",
                m.category or "-",
                m.title,
                ", ".join(m.tags or []),
            )
    console.print(table)


@memories_app.command("add")
def memories_add(
    title: str = typer.Argument(..., help="Short title"),
    description: str = typer.Option("", "--description", "-d", help="What happened"),
    category: Optional[str] = typer.Option(None, "--category", "-c"),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Comma-separated tags"),
    location: Optional[str] = typer.Option(None, "--location", "-l"),
) -> None:
    """Log a new memory."""
    from recall.db.database import session_scope
    from recall.db.memory_store import MemoryStore

    tag_list = [t.strip() for t in tags.split(",")] if tags else []
    with session_scope() as session:
        try:
            memory = MemoryStore(session).create_memory(
                title=title,
                description=description,
                category=category,
                tags=tag_list,
                location=location,
            )
        except ValueError as e:
            rprint(f"[red]✗[/red] {e}")
            raise typer.Exit(code=1)
        rprint(f"[green]✓[/green] Memory {memory.id} logged ({memory.category})")


@memories_app.command("stats")
def memories_stats() -> None:
    """Memory counts by category."""
    from recall.db.database import session_scope
    from recall.db.memory_store import MemoryStore

    with session_scope() as session:
        stats = MemoryStore(session).get_memory_stats()

    table = Table(title=f"{stats['total']} memories, {stats['this_week']} this week")
    table.add_column("Category", style="magenta")
    table.add_column("Count", justify="right")
    for row in stats["by_category"]:
        table.add_row(row["category"], str(row["count"]))
    console.print(table)


# ========================================
# QUIZ
# ========================================


@app.command("quiz")
def quiz(
    count: int = typer.Option(5, "--count", "-n", min=1, help="Number of questions"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Only quiz this category"),
    save: bool = typer.Option(True, "--save/--no-save", help="Store the score"),
) -> None:
    """Answer recall questions about your own memories."""
    from recall.db.database import session_scope
    from recall.db.memory_store import MemoryStore
    from recall.generation import MemorySnapshot, QuestionGenerationError, QuestionGenerator, UsageTracker
    from recall.llm import OllamaClient
    from recall.scoring import AnswerScorer

    settings = get_settings()
    client = OllamaClient()
    usage = UsageTracker(question_window=timedelta(minutes=settings.question_history_window_minutes))

    with session_scope() as session:
        store = MemoryStore(session)
        memories = [MemorySnapshot.from_model(m) for m in store.list_memories(category=category)]
        if not memories:
            rprint("[yellow]No memories to quiz on. Add some with 'recall memories add'.[/yellow]")
            raise typer.Exit(code=1)

        with console.status("Generating questions..."):
            try:
                result = QuestionGenerator(client, usage).generate(memories, count)
            except QuestionGenerationError as e:
                rprint(f"[red]✗[/red] {e}")
                raise typer.Exit(code=1)

        answers = []
        for i, question in enumerate(result.questions, start=1):
            console.print(f"\n[bold cyan]Q{i}.[/bold cyan] {question.text}")
            answers.append(Prompt.ask("[dim]Your answer[/dim]", default="", show_default=False))

        with console.status("Scoring answers..."):
            summary = AnswerScorer(client).score_and_summarize(result.questions, answers)

        table = Table(title="Results")
        table.add_column("#", justify="right")
        table.add_column("Question")
        table.add_column("Your answer")
        table.add_column("Verdict")
        table.add_column("Why", style="dim")
        for i, detail in enumerate(summary.details, start=1):
            if detail["correct"]:
                verdict = "[green]correct[/green]"
            elif detail["partial"]:
                verdict = "[yellow]partial[/yellow]"
            else:
                verdict = "[red]incorrect[/red]"
            table.add_row(str(i), detail["question"], detail["user_answer"] or "-", verdict, detail["reasoning"])
        console.print(table)
        console.print(
            Panel(
                f"[bold]{summary.final_score:g} / {summary.total_questions}[/bold]  ({summary.percentage}%)",
                title="Score",
            )
        )

        if save:
            saved = store.create_test_score(
                total_questions=summary.total_questions,
                correct_answers=summary.correct_answers,
                partial_answers=summary.partial_answers,
                final_score=summary.final_score,
                percentage=summary.percentage,
                details=summary.details,
                memories_tested=summary.memories_tested,
            )
            rprint(f"[green]✓[/green] Saved as test {saved.id}")


# ========================================
# PROGRESS
# ========================================


@app.command("progress")
def progress(
    window: int = typer.Option(7, "--window", "-w", min=1, help="Number of recent tests to chart"),
) -> None:
    """Show score history and trend."""
    from recall.db.database import session_scope
    from recall.db.memory_store import MemoryStore
    from recall.progress import ProgressTracker

    with session_scope() as session:
        tracker = ProgressTracker(MemoryStore(session))
        summary = tracker.summary(window)

    if summary.total_tests == 0:
        rprint("[yellow]No tests taken yet. Run 'recall quiz' first.[/yellow]")
        return

    table = Table(title="Progress", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Tests taken", str(summary.total_tests))
    table.add_row("Average", f"{summary.average_score}%")
    table.add_row("Best", f"{summary.best_score}%")
    table.add_row("Worst", f"{summary.worst_score}%")
    trend_style = "green" if summary.improvement_trend >= 0 else "red"
    table.add_row("Trend (last 10)", f"[{trend_style}]{summary.improvement_trend:+d}[/{trend_style}]")
    console.print(table)

    console.print(Panel("\n".join(ProgressTracker.render_chart(summary.recent)), title=f"Last {len(summary.recent)} tests"))


@app.command("feedback")
def feedback() -> None:
    """Coaching feedback on your recent tests."""
    from recall.db.database import session_scope
    from recall.db.memory_store import MemoryStore
    from recall.llm import OllamaClient
    from recall.progress import FeedbackService, ProgressTracker

    with session_scope() as session:
        service = FeedbackService(OllamaClient(), ProgressTracker(MemoryStore(session)))
        with console.status("Thinking..."):
            result = service.generate()

    source = "AI coach" if result.using_ai else "Memory coach"
    console.print(Panel(result.feedback, title=source))


@app.command("status")
def status() -> None:
    """Check whether Ollama is running and the model is installed."""
    from recall.llm import OllamaClient

    result = OllamaClient().check_status()
    if not result.running:
        rprint(f"[red]✗[/red] Ollama not reachable: {result.error}")
        raise typer.Exit(code=1)
    mark = "[green]✓[/green]" if result.model_available else "[yellow]![/yellow]"
    rprint(f"[green]✓[/green] Ollama running ({len(result.models)} models)")
    rprint(f"{mark} Model {result.model} {'installed' if result.model_available else 'not installed'}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
