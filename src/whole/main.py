"""
Whole - CLI Entry Point.

Usage:
    whole health             Check configuration and Supabase connectivity
    whole widget             Show what the widget would display right now
    whole browse             Start a session and browse the feed
    whole --help             Show help
"""

import asyncio
import logging
import sys

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

app = typer.Typer(
    name="whole",
    help="Whole - bilingual daily quotes.",
    add_completion=False,
)
console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Setup logging with visible output."""
    from whole.config import settings

    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


@app.command()
def health() -> None:
    """Check system health and configuration."""
    from whole.config import get_settings

    console.print("\n[bold]Whole Health Check[/bold]\n")

    try:
        settings = get_settings()
        console.print("✅ Configuration loaded")
        console.print(f"   Environment: {settings.whole_env}")
        console.print(f"   Log level: {settings.log_level}")
        console.print(f"   Free quota: {settings.free_quota}")
        console.print(f"   Widget defaults: {settings.widget_defaults_path}")
    except Exception as e:
        console.print(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    try:
        from whole.db.client import get_client

        client = get_client()
        client.table("quotes").select("id").limit(1).execute()
        console.print("✅ Supabase connected")
    except Exception as e:
        console.print(f"❌ Supabase error: {e}")
        raise typer.Exit(1)

    console.print("\n[green]All systems operational![/green]\n")


@app.command()
def widget() -> None:
    """Show the widget entry read from the shared slot."""
    from whole.widget import WidgetBridge

    entry = WidgetBridge.from_settings().entry()
    console.print(
        Panel.fit(
            f"[bold]{entry.quote.english_text}[/bold]\n{entry.quote.chinese_text}",
            title=f"Widget · {entry.theme.display_name}",
            subtitle=f"next refresh {entry.next_refresh:%Y-%m-%d %H:%M} UTC",
            border_style="green",
        )
    )


@app.command()
def browse(
    user: str = typer.Option(None, "--user", "-u", help="User id (defaults to DEV_USER_ID)"),
    index: int = typer.Option(0, "--index", "-i", help="Feed position to move to"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Start a session, list the visible feed and move to a position."""
    from whole.config import settings
    from whole.db.gateway import SupabaseGateway
    from whole.errors import WholeError
    from whole.session import QuoteSession
    from whole.widget import WidgetBridge

    setup_logging(verbose)
    user_id = user or settings.dev_user_id
    session = QuoteSession(SupabaseGateway(), WidgetBridge.from_settings(), quota=settings.free_quota)

    try:
        asyncio.run(session.start(user_id))
        crossed = session.feed.advance(index) if session.feed.quotes else False
    except WholeError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    plan = "premium" if session.is_premium() else "free"
    console.print(f"\n[bold]{session.profile.email}[/bold] ({plan})")
    if session.likes_error:
        console.print(f"[yellow]{session.likes_error.message}[/yellow]")

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Quote")
    table.add_column("♥")
    for i, quote in enumerate(session.feed.quotes):
        style = None if session.feed.is_interactive(i) else "dim"
        marker = "→ " if i == session.feed.index else ""
        liked = "♥" if session.likes.is_liked(quote.id) else ""
        table.add_row(str(i), f"{marker}{quote.english_text}\n{quote.chinese_text}", liked, style=style)
    console.print(table)

    if crossed or session.show_paywall_cta:
        console.print("[magenta]Free limit reached. Upgrade for unlimited quotes.[/magenta]")


if __name__ == "__main__":
    app()
