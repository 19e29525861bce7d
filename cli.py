#!/usr/bin/env python3
"""
PageQuiz - exams from your documents.
CLI interface for listing chapters, taking exams and checking providers.
"""

import asyncio
import logging
import re

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from config import Config
from core.chapter_detector import ChapterDetector
from core.content_locator import ContentLocator
from core.document import open_document
from core.dto import (
    OPTION_LETTERS,
    QUESTION_TYPES,
    ExamConfig,
    FillBlankQuestion,
    MatchingQuestion,
    MCQQuestion,
    PageSelection,
    SelectionMode,
    ShortAnswerQuestion,
    TrueFalseQuestion,
)
from core.exam_session import ExamSession, SessionState
from core.exam_types import Difficulty, ExamType
from core.exceptions import ExamError
from core.generation_client import GenerationClient
from core.provider_router import ProviderRouter
from core.scorer import Scorer
from models.llm_manager import LLMManager

console = Console()

MATCHING_PAIR = re.compile(r"(\d+)\s*-\s*([A-Za-z])")

ANSWER_HINTS = {
    ExamType.MCQ: "Answer with A, B, C or D",
    ExamType.TRUE_FALSE: "Answer with T or F",
    ExamType.FILL_BLANK: "Type the missing word or phrase",
    ExamType.MATCHING: "Answer like: 1-A, 2-C, 3-B",
    ExamType.SHORT_ANSWER: "Answer in 1-3 sentences",
}

NAVIGATION_HELP = "[dim]Enter to keep your answer, :p previous, :n next, :s submit[/dim]"


def setup_logging(verbose: bool):
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose)],
        force=True,
    )


def parse_answer(question, raw: str):
    """Convert typed input into the answer shape a question expects.

    Returns None when the input cannot be understood.
    """
    raw = raw.strip()
    if not raw:
        return None

    if isinstance(question, MCQQuestion):
        letter = raw.upper()
        return letter if letter in OPTION_LETTERS else None

    if isinstance(question, TrueFalseQuestion):
        token = raw.upper()
        if token in ("T", "TRUE"):
            return "TRUE"
        if token in ("F", "FALSE"):
            return "FALSE"
        return None

    if isinstance(question, MatchingQuestion):
        pairs = {int(num): letter.upper() for num, letter in MATCHING_PAIR.findall(raw)}
        return pairs or None

    if isinstance(question, (FillBlankQuestion, ShortAnswerQuestion)):
        return raw

    raise TypeError(f"Unknown question type: {type(question).__name__}")


def build_selection(pages, page, start, end, chapters) -> PageSelection:
    """Map CLI page options to a PageSelection."""
    if pages == "current":
        return PageSelection(mode=SelectionMode.CURRENT, current_page=page)
    if pages == "range":
        return PageSelection(mode=SelectionMode.RANGE, start_page=start, end_page=end)
    if pages == "chapters":
        return PageSelection(mode=SelectionMode.CHAPTERS, chapter_ids=list(chapters))
    return PageSelection(mode=SelectionMode.ALL)


def render_question(question, index: int):
    if not isinstance(question, QUESTION_TYPES):
        raise TypeError(f"Unknown question type: {type(question).__name__}")

    body = escape(question.question)

    if isinstance(question, MCQQuestion):
        options = "\n".join(f"  {letter}) {escape(text)}" for letter, text in zip(OPTION_LETTERS, question.options))
        body = f"{body}\n\n{options}"
    elif isinstance(question, MatchingQuestion):
        terms = "\n".join(f"  {i}. {escape(term)}" for i, term in enumerate(question.terms, 1))
        definitions = "\n".join(
            f"  {chr(ord('A') + i)}. {escape(text)}" for i, text in enumerate(question.definitions)
        )
        body = f"{body}\n\n[bold]Terms[/bold]\n{terms}\n\n[bold]Definitions[/bold]\n{definitions}"

    console.print(Panel(body, title=f"Question {index + 1}", border_style="blue"))
    console.print(f"[dim]{ANSWER_HINTS[question.kind]}[/dim]")


def print_result(result):
    color = "green" if result.percent >= 80 else "yellow" if result.percent >= 60 else "red"
    console.print("\n" + "=" * 60 + "\n")
    console.print(f"[bold cyan]📊 {result.headline}[/bold cyan]\n")
    console.print(f"[bold]Score: [{color}]{result.percent}%[/{color}][/bold]")
    console.print(f"Correct: {result.correct}/{result.total}")
    console.print(f"Time: {result.elapsed_label}")

    if not result.mistakes:
        console.print("\n[green]No mistakes - well done![/green]\n")
        return

    console.print(f"\n[bold]Review Mistakes ({len(result.mistakes)}):[/bold]\n")
    for mistake in result.mistakes:
        lines = [
            escape(mistake.question.question),
            "",
            f"[red]Your answer:[/red] {escape(Scorer.format_answer(mistake.user_answer))}",
            f"[green]Correct answer:[/green] {escape(Scorer.format_answer(mistake.correct_answer))}",
        ]
        if mistake.explanation:
            lines.append(f"[dim]{escape(mistake.explanation)}[/dim]")
        console.print(Panel("\n".join(lines), title=f"Question {mistake.number}", border_style="red"))


def run_exam_loop(session: ExamSession):
    """Drive an in-progress session from the terminal until submitted."""
    console.print(NAVIGATION_HELP + "\n")

    while session.state == SessionState.IN_PROGRESS:
        question = session.current_question
        index = session.current_index

        console.print(f"[bold]{session.progress_label}[/bold]  [dim]⏱ {session.elapsed_label}[/dim]")
        render_question(question, index)

        previous = session.answers.get(index)
        if previous is not None:
            console.print(f"[dim]Current answer: {Scorer.format_answer(previous)}[/dim]")

        raw = click.prompt("Answer", default="", show_default=False)
        command = raw.strip().lower()

        if command == ":p":
            session.previous()
            continue
        if command == ":n":
            session.next()
            continue
        if command == ":s":
            if click.confirm("Submit exam?", default=True):
                session.submit()
            continue

        if raw.strip():
            answer = parse_answer(question, raw)
            if answer is None:
                console.print("[yellow]Could not understand that answer, try again.[/yellow]\n")
                continue
            session.record_answer(index, answer)

        if session.is_last_question:
            if click.confirm("That was the last question. Submit exam?", default=True):
                session.submit()
        else:
            session.next()
        console.print()


@click.group()
@click.version_option(version="0.1.0", prog_name="PageQuiz")
def cli():
    """PageQuiz - turn any document into a self-assessment exam."""
    pass


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def chapters(file, verbose):
    """Show the chapters detected in FILE."""
    setup_logging(verbose)

    async def detect():
        with open_document(file) as document:
            detector = ChapterDetector()
            found = await ContentLocator(document, detector).detect_chapters()
            return found, detector.last_tier

    try:
        found, tier = asyncio.run(detect())
    except (ExamError, OSError, RuntimeError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()

    if not found:
        console.print("\n[yellow]The document has no pages.[/yellow]\n")
        return

    table = Table(title=f"Chapters ({tier} detection)")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Title", style="bold", no_wrap=True)
    table.add_column("Pages", justify="right", no_wrap=True)
    table.add_column("Preview", style="dim", max_width=30, overflow="ellipsis", no_wrap=True)

    for chapter in found:
        table.add_row(
            str(chapter.id),
            chapter.title,
            f"{chapter.start_page}-{chapter.end_page} ({chapter.page_count})",
            chapter.preview,
        )

    console.print()
    console.print(table)
    console.print(f"\nTotal: {len(found)} chapters\n")


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--type",
    "exam_type",
    type=click.Choice([t.value for t in ExamType]),
    default=ExamType.MCQ.value,
    help="Exam type (default: mcq)",
)
@click.option(
    "--count",
    "-n",
    type=click.IntRange(min=1),
    default=Config.DEFAULT_QUESTION_COUNT,
    help=f"Number of questions (default: {Config.DEFAULT_QUESTION_COUNT})",
)
@click.option(
    "--difficulty",
    type=click.Choice([d.value for d in Difficulty]),
    default=Config.DEFAULT_DIFFICULTY,
    help=f"Difficulty (default: {Config.DEFAULT_DIFFICULTY})",
)
@click.option(
    "--pages",
    type=click.Choice([m.value for m in SelectionMode]),
    default=SelectionMode.ALL.value,
    help="Which pages to examine (default: all)",
)
@click.option("--page", type=int, default=1, help="Page for --pages current")
@click.option("--start", type=int, default=1, help="First page for --pages range")
@click.option("--end", type=int, default=None, help="Last page for --pages range")
@click.option(
    "--chapter",
    "chapter_ids",
    type=int,
    multiple=True,
    help="Chapter id for --pages chapters (repeatable; default: all chapters)",
)
@click.option(
    "--profile",
    default=None,
    help="Provider profile (default: PAGEQUIZ_PROVIDER_PROFILE or 'default')",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def exam(file, exam_type, count, difficulty, pages, page, start, end, chapter_ids, profile, verbose):
    """Take an interactive exam on FILE."""
    setup_logging(verbose)

    try:
        chain = ProviderRouter().get_chain(profile)
    except (ValueError, FileNotFoundError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()

    config = ExamConfig(
        exam_type=ExamType.from_string(exam_type),
        question_count=count,
        difficulty=Difficulty.from_string(difficulty),
        page_selection=build_selection(pages, page, start, end, chapter_ids),
    )

    async def run():
        with open_document(file) as document:
            async with LLMManager() as llm:
                session = ExamSession(document, GenerationClient.from_chain(llm, chain))
                with console.status("Generating exam..."):
                    await session.start(config)
                return session

    try:
        session = asyncio.run(run())
    except (ExamError, OSError, RuntimeError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()

    info = f"📝 {config.exam_type.display_name}: {len(session.questions)} questions"
    info += f" | Difficulty: {config.difficulty.value}"
    if session.generation_source == "rule_based":
        info += " | Source: rule-based (no provider available)"
    else:
        info += f" | Source: {session.generation_source}"
    console.print()
    console.print(Panel(info, style="cyan"))

    while True:
        run_exam_loop(session)
        print_result(session.result)

        if not click.confirm("Retake this exam?", default=False):
            break
        session.retake()
        console.print()


@cli.command()
def profiles():
    """List provider profiles."""
    try:
        router = ProviderRouter()
    except (ValueError, FileNotFoundError) as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}\n")
        raise click.Abort()

    table = Table(title="Provider Profiles")
    table.add_column("Profile", style="cyan")
    table.add_column("Providers (in order)")
    table.add_column("Temperature", justify="right")
    table.add_column("Max tokens", justify="right")
    table.add_column("Description", style="dim")

    for name in router.list_profiles():
        info = router.get_profile_info(name)
        marker = " *" if name == Config.PROVIDER_PROFILE else ""
        table.add_row(
            name + marker,
            ", ".join(info["providers"]) or "(rule-based only)",
            f"{info['temperature']:.1f}",
            str(info["max_tokens"]),
            info["description"],
        )

    console.print()
    console.print(table)
    console.print("[dim]* default profile[/dim]\n")

    for name, issues in router.validate_profiles().items():
        for issue in issues:
            console.print(f"[yellow]⚠ {name}: {issue}[/yellow]")


@cli.command()
def models():
    """List Gemini models available for the configured API key."""
    if not LLMManager.is_provider_available():
        console.print("\n[yellow]GEMINI_API_KEY is not set.[/yellow]\n")
        return

    with console.status("Fetching models..."):
        available = LLMManager().list_available_models()

    if not available:
        console.print("\n[yellow]No models found (check your API key and network).[/yellow]\n")
        return

    console.print("\n[bold]Available models:[/bold]")
    for name in available:
        console.print(f"  • {name}")
    console.print()


if __name__ == "__main__":
    cli()
