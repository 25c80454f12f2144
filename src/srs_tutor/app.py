"""Interactive CLI application."""
import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from srs_tutor.config import DEFAULT_DB_PATH, DEFAULT_USER_ID, LOG_LEVEL, SESSION_DEFAULT_LIMIT
from srs_tutor.dashboard import get_retention_color, get_retention_label, get_study_stats
from srs_tutor.db import init_db
from srs_tutor.errors import TutorError
from srs_tutor.flashcards import create_flashcards, list_flashcards
from srs_tutor.generations import list_generation_sessions
from srs_tutor.importer import import_file
from srs_tutor.models import DueSession
from srs_tutor.rate_limit import generations_key, generations_limiter
from srs_tutor.sm2 import Rating
from srs_tutor.study import get_due_session, review

console = Console()
logger = logging.getLogger(__name__)

EXIT_WORDS = ("q", "menu")
RATING_CHOICES = [str(int(r)) for r in Rating]


class SessionExitRequested(Exception):
    """User asked to leave the current session and return to the menu."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def session_int_prompt(prompt: str, choices: list[str]) -> int:
    while True:
        answer = session_prompt(prompt).strip()
        if answer in choices:
            return int(answer)
        console.print(f"[red]Please enter one of: {', '.join(choices)}[/red]")


def show_welcome():
    console.print(Panel(
        "[bold]Spaced Repetition Tutor[/bold]\n[dim]SM-2 flashcard reviews[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("study", "Review due flashcards"),
        ("add", "Add a flashcard"),
        ("list", "Browse your flashcards"),
        ("import", "Import a deck file"),
        ("stats", "Study statistics"),
        ("history", "AI generation history"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_rating_scale():
    for rating in Rating:
        color = "green" if rating.passed else "red"
        console.print(f"  [{color}]{int(rating)}[/{color}] {rating.label}")


def run_study_session(db_path: str, user_id: str, session: DueSession) -> int:
    """Walk the session's cards in order. Returns the number reviewed."""
    if not session.cards:
        console.print("[yellow]No flashcards due right now![/yellow]")
        return 0
    console.print(
        f"\n[bold]Study Session[/bold] - {session.count} cards"
        + (f" ({session.total_due} due in total)" if session.total_due > session.count else "")
        + "\n[dim]Type 'q' at any prompt to stop.[/dim]\n"
    )
    reviewed = 0
    for cursor, card in enumerate(session.cards, 1):
        console.print(Panel(card.front, title=f"Card {cursor}/{session.count}", border_style="cyan"))
        session_prompt("[dim]Press Enter to reveal answer[/dim]", default="", show_default=False)
        console.print(Panel(card.back, border_style="green"))
        show_rating_scale()
        rating = session_int_prompt("Rate your recall", choices=RATING_CHOICES)
        result = review(db_path, user_id, card.id, rating)
        reviewed += 1
        console.print(
            f"[dim]Next review in {result.interval} day(s): "
            f"{result.next_review_date:%Y-%m-%d %H:%M} UTC[/dim]\n"
        )
    remaining = session.total_due - reviewed
    console.print(f"[green]Session complete![/green] {reviewed} reviewed"
                  + (f", {remaining} still due." if remaining > 0 else "."))
    return reviewed


def cmd_study(db_path: str, user_id: str):
    session = get_due_session(db_path, user_id, limit=SESSION_DEFAULT_LIMIT)
    try:
        run_study_session(db_path, user_id, session)
    except SessionExitRequested:
        console.print("[dim]Session stopped.[/dim]")


def cmd_add(db_path: str, user_id: str):
    front = Prompt.ask("Front")
    back = Prompt.ask("Back")
    card = create_flashcards(db_path, user_id, [{"front": front, "back": back, "source": "manual"}])[0]
    console.print(f"[green]Added card #{card.id}. It is due now.[/green]")


def cmd_list(db_path: str, user_id: str):
    page_number = 1
    while True:
        page = list_flashcards(db_path, user_id, page=page_number, limit=10, sort="next_review_date", order="asc")
        if not page.cards:
            console.print("[yellow]No flashcards yet. Use 'add' or 'import'.[/yellow]")
            return
        table = Table(title=f"Flashcards (page {page.page}/{page.total_pages}, {page.total} total)")
        table.add_column("#", justify="right")
        table.add_column("Front", style="cyan")
        table.add_column("Source")
        table.add_column("EF", justify="right")
        table.add_column("Interval", justify="right")
        table.add_column("Next review")
        for card in page.cards:
            table.add_row(
                str(card.id),
                card.front,
                card.source,
                f"{card.ease_factor:.2f}",
                f"{card.interval}d",
                f"{card.next_review_date:%Y-%m-%d}",
            )
        console.print(table)
        if page.page >= page.total_pages:
            return
        if Prompt.ask("Next page?", choices=["y", "n"], default="n") != "y":
            return
        page_number += 1


def cmd_import(db_path: str, user_id: str):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    cards = import_file(db_path, user_id, file_path)
    console.print(f"[green]Imported {len(cards)} cards from {Path(file_path).name}[/green]")


def cmd_stats(db_path: str, user_id: str):
    stats = get_study_stats(db_path, user_id)
    retention = stats["retention"]
    color = get_retention_color(retention)
    console.print(Panel(
        f"Cards: [bold]{stats['total_cards']}[/bold]  |  Due now: [bold]{stats['due_now']}[/bold]\n"
        f"Reviews: [bold]{stats['reviews_total']}[/bold] ({stats['reviews_today']} today)  |  "
        f"Avg ease: [bold]{stats['avg_ease_factor']}[/bold]\n"
        f"Retention: [{color}]{retention}% {get_retention_label(retention)}[/{color}]",
        title="Study Statistics", border_style="blue",
    ))


def cmd_history(db_path: str, user_id: str):
    page = list_generation_sessions(db_path, user_id, page=1, limit=10)
    limit_info = generations_limiter(db_path).info(generations_key(user_id))
    if not page.sessions:
        console.print("[yellow]No AI generation sessions yet.[/yellow]")
    else:
        table = Table(title=f"Generation history ({page.total} sessions)")
        table.add_column("#", justify="right")
        table.add_column("Date")
        table.add_column("Generated", justify="right")
        table.add_column("Accepted", justify="right")
        for session in page.sessions:
            table.add_row(
                str(session.id),
                f"{session.created_at:%Y-%m-%d %H:%M}",
                str(session.generated_count),
                str(session.accepted_count),
            )
        console.print(table)
    summary = page.summary
    console.print(
        f"Accepted [bold]{summary.total_accepted}[/bold] of [bold]{summary.total_generated}[/bold] "
        f"proposals ({summary.acceptance_rate}%)\n"
        f"[dim]{limit_info.remaining} generations left this hour, "
        f"window resets {limit_info.reset_at:%H:%M} UTC[/dim]"
    )


COMMANDS = {
    "study": cmd_study,
    "add": cmd_add,
    "list": cmd_list,
    "import": cmd_import,
    "stats": cmd_stats,
    "history": cmd_history,
}


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=level, format="%(message)s", datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def main():
    configure_logging()
    db_path = DEFAULT_DB_PATH
    user_id = DEFAULT_USER_ID
    init_db(db_path)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="study").strip().lower()
        try:
            if choice in ("quit", "exit", "q"):
                console.print("[dim]See you at your next review![/dim]")
                break
            elif choice in COMMANDS:
                COMMANDS[choice](db_path, user_id)
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except TutorError as e:
            console.print(f"[red]{e}[/red]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
