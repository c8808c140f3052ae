"""CLI commands for StudyHub.

Commands:
- serve: Run the Web API
- init-db: Create the local SQLite database
- flows: List the AI flows
- extract: Extract text from a document
- summarize: Summarize a document or text
- quiz: Take an interactive quiz on a topic
- flashcards: Study an interactive flashcard deck
"""

import mimetypes
from pathlib import Path

import typer
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from studyhub.config.app_config import load_app_config
from studyhub.core.data_uri import to_data_uri
from studyhub.core.study_tools import FlashcardDeck, QuizSession
from studyhub.db.database import init_db as do_init_db
from studyhub.flows.base import FlowError, list_flows
from studyhub.flows.extract_content import ExtractContentFlow
from studyhub.flows.generate_flashcards import generate_flashcards
from studyhub.flows.generate_quiz import generate_quiz
from studyhub.flows.summarize_content import summarize_content
from studyhub.llm.client import LLMClient, LLMConfig, LLMConnectionError, LLMError

app = typer.Typer(
    name="studyhub",
    help="Learning assistant: summaries, quizzes and flashcards from your study materials.",
    no_args_is_help=True,
)

console = Console()


def _build_client(provider: str | None, model: str | None) -> LLMClient:
    """LLM client from config, with CLI overrides."""
    config = LLMConfig.from_dict(load_app_config().llm)
    return LLMClient(config=config, provider=provider, model=model)  # type: ignore[arg-type]


def _fail(message: str) -> None:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(code=1)


def _guess_mime(path: Path) -> str:
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or "application/octet-stream"


def _read_document(path: Path, client: LLMClient) -> str:
    """Text of a file: read directly for text/*, extracted otherwise."""
    if not path.is_file():
        _fail(f"File not found: {path}")

    mime_type = _guess_mime(path)
    if mime_type.startswith("text/"):
        return path.read_text(encoding="utf-8", errors="replace")

    limits = load_app_config().limits
    flow = ExtractContentFlow(max_bytes=limits.max_extract_bytes)
    output = flow.run({"file_data_uri": to_data_uri(path.read_bytes(), mime_type)}, client=client)
    return output.extracted_text


def _run_or_exit(func, *args, **kwargs):
    """Run a flow call, turning flow and model errors into a clean exit."""
    try:
        return func(*args, **kwargs)
    except LLMConnectionError as e:
        console.print("[red]✗ Could not reach the model provider[/red]")
        console.print(f"  [dim]{e}[/dim]")
        raise typer.Exit(code=1)
    except (FlowError, LLMError) as e:
        _fail(str(e))


# =============================================================================
# SERVER & SETUP
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    console.print(f"[blue]Serving StudyHub API on http://{host}:{port}[/blue]")
    uvicorn.run("studyhub.web.api:create_app", host=host, port=port, reload=reload, factory=True)


@app.command(name="init-db")
def init_db(
    path: str | None = typer.Option(None, "--path", help="Database file (default from config)"),
) -> None:
    """Create the local SQLite document database."""
    db_path = Path(path or load_app_config().backend.db_path)
    created = do_init_db(db_path)
    console.print(f"[green]✓ Database ready:[/green] {created}")


@app.command()
def flows() -> None:
    """List the AI flows."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Flow")
    table.add_column("Prompt")
    table.add_column("Description")

    for flow in list_flows():
        table.add_row(flow.name, flow.prompt_key, flow.description)

    console.print(table)


# =============================================================================
# AI COMMANDS
# =============================================================================


@app.command()
def extract(
    file: Path = typer.Argument(..., help="Document to extract (PDF, EPUB, HTML, text, media)"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write text to this file"),
    provider: str | None = typer.Option(None, "--provider", help="LLM provider: gemini, openai, lmstudio"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model name (overrides config)"),
) -> None:
    """Extract the text content of a document."""
    if not file.is_file():
        _fail(f"File not found: {file}")

    client = _build_client(provider, model)
    limits = load_app_config().limits
    flow = ExtractContentFlow(max_bytes=limits.max_extract_bytes)
    data_uri = to_data_uri(file.read_bytes(), _guess_mime(file))

    result = _run_or_exit(flow.run, {"file_data_uri": data_uri}, client=client)

    if output:
        output.write_text(result.extracted_text, encoding="utf-8")
        console.print(f"[green]✓ Extracted {len(result.extracted_text)} chars[/green] → {output}")
    else:
        console.print(result.extracted_text)

    console.print(
        f"  [dim]method:[/dim] {result.method}"
        + (f"  [dim]language:[/dim] {result.detected_language}" if result.detected_language else "")
    )


@app.command()
def summarize(
    file: Path | None = typer.Argument(None, help="Document to summarize"),
    text: str | None = typer.Option(None, "--text", "-t", help="Text to summarize"),
    provider: str | None = typer.Option(None, "--provider", help="LLM provider"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model name"),
) -> None:
    """Summarize a document or a piece of text."""
    if not file and not text:
        _fail("Give a FILE or --text")

    client = _build_client(provider, model)
    content = text or _run_or_exit(_read_document, file, client)

    result = _run_or_exit(summarize_content, content, client=client)
    title = f"Summary of {file.name}" if file else "Summary"
    console.print(Panel(Markdown(result.summary), title=f"[bold]{title}[/bold]", expand=False))


def _ask_option(options: list[str]) -> str:
    """Ask for an option number until valid input (1..k)."""
    while True:
        for idx, opt in enumerate(options, start=1):
            console.print(f"  {idx}. {opt}")

        raw = typer.prompt(f"Choose an option (1-{len(options)})")
        try:
            choice = int(raw.strip())
            if 1 <= choice <= len(options):
                return options[choice - 1]
            console.print(f"[yellow]⚠ Must be 1-{len(options)}[/yellow]")
        except ValueError:
            console.print("[yellow]⚠ Enter a number[/yellow]")


@app.command()
def quiz(
    topic: str = typer.Argument(..., help="Quiz topic"),
    difficulty: str = typer.Option("medium", "--difficulty", "-d", help="easy, medium, hard"),
    n: int = typer.Option(10, "-n", help="Number of questions (1-20)"),
    context_file: Path | None = typer.Option(
        None, "--context-file", "-c", help="Text file with context for the questions"
    ),
    provider: str | None = typer.Option(None, "--provider", help="LLM provider"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model name"),
) -> None:
    """Generate a quiz and take it interactively."""
    if len(topic.strip()) < 3:
        _fail("Topic must be at least 3 characters")

    context_text = None
    if context_file:
        if not context_file.is_file():
            _fail(f"File not found: {context_file}")
        context_text = context_file.read_text(encoding="utf-8", errors="replace")

    client = _build_client(provider, model)
    console.print(f"[blue]Generating {n} {difficulty} questions on {topic}...[/blue]")
    output = _run_or_exit(
        generate_quiz,
        topic=topic,
        difficulty=difficulty,
        number_of_questions=n,
        context_text=context_text,
        client=client,
    )

    session = QuizSession(output.questions)
    while True:
        question = session.current
        console.print(
            f"\n[bold]Question {session.index + 1}/{len(session.questions)}[/bold]  {question.question}"
        )
        choice = _ask_option(question.options)
        session.answer(choice)

        if choice == question.answer:
            console.print("[green]✓ Correct[/green]")
        else:
            console.print(f"[red]✗ Incorrect.[/red] Answer: {question.answer}")
        if question.explanation:
            console.print(f"  [dim]{question.explanation}[/dim]")

        if session.is_last:
            break
        session.next()

    score = session.score()
    console.print(
        Panel(
            f"{score.correct}/{score.total} correct ({score.percent:.0f}%)",
            title="[bold]Quiz results[/bold]",
            expand=False,
        )
    )


@app.command()
def flashcards(
    file: Path | None = typer.Argument(None, help="Document to make flashcards from"),
    text: str | None = typer.Option(None, "--text", "-t", help="Topic or text"),
    provider: str | None = typer.Option(None, "--provider", help="LLM provider"),
    model: str | None = typer.Option(None, "--model", "-m", help="Model name"),
) -> None:
    """Generate flashcards and study them interactively.

    Keys: f = flip, n = next, p = previous, q = quit.
    """
    if not file and not text:
        _fail("Give a FILE or --text")

    client = _build_client(provider, model)
    source = text or _run_or_exit(_read_document, file, client)

    output = _run_or_exit(generate_flashcards, source, client=client)
    if not output.flashcards:
        _fail("No flashcards were generated")

    deck = FlashcardDeck(output.flashcards)
    while True:
        side = "Answer" if deck.flipped else "Question"
        console.print(
            Panel(
                deck.visible_text,
                title=f"[bold]Card {deck.index + 1}/{len(deck)}[/bold] · {side}",
                expand=False,
            )
        )
        key = typer.prompt("[f]lip [n]ext [p]revious [q]uit", default="f").strip().lower()
        if key.startswith("q"):
            break
        if key.startswith("n"):
            if not deck.next():
                console.print("[dim]Last card[/dim]")
        elif key.startswith("p"):
            if not deck.previous():
                console.print("[dim]First card[/dim]")
        else:
            deck.flip()


if __name__ == "__main__":
    app()
