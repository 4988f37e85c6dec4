"""Interactive CLI application."""
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt, Confirm
from rich.table import Table

from flashdeck.api import HttpDeckSource, HttpProgressStore
from flashdeck.config import Settings, get_settings
from flashdeck.controller import StudySession
from flashdeck.db import init_db
from flashdeck.errors import DeckImportError, DeckLoadError
from flashdeck.importer import import_deck
from flashdeck.keys import dispatch
from flashdeck.logging import configure_logging
from flashdeck.models import SIDE_DEFINITION, SIDE_TERM
from flashdeck.seed import is_seeded, seed_sample_deck
from flashdeck.session import Status, progress_percent, visible_faces
from flashdeck.starred import starred_in_deck_order
from flashdeck.stats import mastered, still_learning
from flashdeck.store import SqliteDeckSource, SqliteProgressStore, list_decks, resolve_user_id

console = Console()

KEY_HELP = (
    "[dim]Enter/f flip · 1 again · 2 hard · 3 good · 4 easy · p/n prev/next · "
    "r random · s star · x shuffle · o options · q menu[/dim]"
)


class SessionExitRequested(Exception):
    """Raised when the learner leaves a study session from a prompt."""


def session_prompt(prompt: str, **kwargs) -> str:
    value = Prompt.ask(prompt, **kwargs)
    if value.strip().lower() in ("q", "menu"):
        raise SessionExitRequested()
    return value


def build_collaborators(settings: Settings):
    """Deck source, progress store and user id for the configured backend."""
    user_id = resolve_user_id(settings.db_path, settings.user_id)
    if settings.api_base_url:
        decks = HttpDeckSource(settings.api_base_url, user_id, timeout=settings.request_timeout_s)
        progress = HttpProgressStore(settings.api_base_url, user_id, timeout=settings.request_timeout_s)
        return decks, progress, user_id
    return SqliteDeckSource(settings.db_path), SqliteProgressStore(settings.db_path), user_id


def show_welcome():
    console.print(Panel(
        "[bold]flashdeck[/bold]\n[dim]Flashcard review sessions[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("study", "Review a deck"),
        ("decks", "List decks"),
        ("import", "Import a deck file (JSON, YAML or tab-separated text)"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def render_card(state) -> None:
    card = state.current_card
    faces = visible_faces(state)
    body = "\n\n".join(
        (card.question if face == "question" else f"[green]{card.answer}[/green]") for face in faces
    )
    if card.image:
        body += f"\n\n[dim]Image: {card.image}[/dim]"
    star = " ★" if card.id in state.starred_ids else ""
    console.print(Panel(
        body,
        title=f"Card {state.pos + 1}/{len(state.queue)}{star}",
        subtitle=f"{progress_percent(state)}% learned",
        border_style="green" if state.showing_answer else "cyan",
    ))


def show_completion(state) -> None:
    counts = state.stats.counts()
    table = Table(title="Session complete")
    table.add_column("Total reviewed", justify="right")
    for name in ("Easy", "Good", "Hard", "Again"):
        table.add_column(name, justify="right")
    table.add_row(
        str(counts["total"]), str(counts["easy"]), str(counts["good"]),
        str(counts["hard"]), str(counts["again"]),
    )
    console.print(table)
    total_cards = len(state.deck.cards)
    console.print(
        f"  Topics mastered: [bold green]{mastered(state.stats)}[/bold green]  |  "
        f"Still learning: [bold yellow]{still_learning(state.stats, total_cards)}[/bold yellow]"
    )


def run_options(study: StudySession) -> None:
    prefs = study.state.preferences
    console.print("\n[bold]Options[/bold]")
    starred = starred_in_deck_order(study.state.deck, study.state.starred_ids)
    console.print(f"  [cyan]starred[/cyan]  Study starred only: {prefs.study_starred_only} ({len(starred)} starred)")
    console.print(f"  [cyan]shuffle[/cyan]  Shuffle preference: {prefs.shuffle}")
    console.print(f"  [cyan]side[/cyan]     Front side: {prefs.side_preference}")
    console.print(f"  [cyan]both[/cyan]     Show both sides: {prefs.show_both_sides}")
    console.print(f"  [cyan]track[/cyan]    Track progress: {prefs.track_progress}")
    console.print(f"  [cyan]reset[/cyan]    Clear stars and rebuild the session")
    choice = Prompt.ask(
        "Option", choices=["starred", "shuffle", "side", "both", "track", "reset", "back"], default="back",
    )
    if choice == "starred":
        study.set_preference(study_starred_only=not prefs.study_starred_only)
    elif choice == "shuffle":
        study.set_preference(shuffle=not prefs.shuffle)
    elif choice == "side":
        side = SIDE_DEFINITION if prefs.side_preference == SIDE_TERM else SIDE_TERM
        study.set_preference(side_preference=side)
    elif choice == "both":
        study.set_preference(show_both_sides=not prefs.show_both_sides)
    elif choice == "track":
        study.set_preference(track_progress=not prefs.track_progress)
    elif choice == "reset":
        if Confirm.ask("Clear starred cards and restart the session?", default=False):
            study.reset_progress()


def run_completion(study: StudySession) -> bool:
    """Completion screen. Returns False when the learner goes back to the menu."""
    show_completion(study.state)
    choice = Prompt.ask("Next", choices=["restart", "review", "menu"], default="menu")
    if choice == "restart":
        study.restart_deck()
    elif choice == "review":
        study.review_only_hard_again()
        if study.status is Status.COMPLETE:
            console.print("[yellow]No cards were rated hard or again.[/yellow]")
    else:
        return False
    return True


def run_study_session(study: StudySession) -> None:
    console.print(f"\n[bold]{study.state.deck.title}[/bold] — {len(study.state.deck.cards)} cards")
    while True:
        if study.status is Status.COMPLETE:
            if not run_completion(study):
                return
            continue
        render_card(study.state)
        key = session_prompt(KEY_HELP, default="", show_default=False)
        if key.strip().lower() == "o":
            run_options(study)
        elif dispatch(study, key) is None:
            console.print("[red]Unknown key.[/red]")


def choose_deck(settings: Settings) -> str | None:
    if settings.api_base_url:
        return Prompt.ask("Deck id").strip() or None
    decks = list_decks(settings.db_path)
    if not decks:
        console.print("[yellow]No decks yet. Use 'import' to add one.[/yellow]")
        return None
    for i, deck in enumerate(decks, 1):
        console.print(f"  [cyan]{i}[/cyan]) {deck['title']} [dim]({deck['card_count']} cards)[/dim]")
    choice = Prompt.ask("Select deck", choices=[str(i) for i in range(1, len(decks) + 1)], default="1")
    return decks[int(choice) - 1]["id"]


def cmd_study(settings: Settings):
    deck_id = choose_deck(settings)
    if not deck_id:
        return
    deck_source, progress_store, user_id = build_collaborators(settings)
    with StudySession(deck_source, progress_store, deck_id, user_id, settings.save_debounce_ms) as study:
        try:
            study.mount()
        except DeckLoadError as e:
            console.print(Panel(f"[red]{e}[/red]", title="Could not load deck", border_style="red"))
            return
        try:
            run_study_session(study)
        except SessionExitRequested:
            console.print("[dim]Progress saved. Back to the menu.[/dim]")


def cmd_decks(settings: Settings):
    decks = list_decks(settings.db_path)
    table = Table(title="Decks")
    table.add_column("Id", style="cyan")
    table.add_column("Title")
    table.add_column("Cards", justify="right")
    for deck in decks:
        table.add_row(deck["id"], deck["title"], str(deck["card_count"]))
    console.print(table)


def cmd_import(settings: Settings):
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    try:
        result = import_deck(settings.db_path, file_path)
    except DeckImportError as e:
        console.print(f"[red]Import failed: {e}[/red]")
        return
    console.print(f"[green]Imported {result['title']} ({result['card_count']} cards) → {result['deck_id']}[/green]")


def main():
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    init_db(settings.db_path)
    first_run = not is_seeded(settings.db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
        seed_sample_deck(settings.db_path)
        console.print("[green]Ready![/green]\n")

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="study").strip().lower()
        try:
            if choice == "study":
                cmd_study(settings)
            elif choice == "decks":
                cmd_decks(settings)
            elif choice == "import":
                cmd_import(settings)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]See you next session![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
