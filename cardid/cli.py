"""Command-line interface for card identification, verification and pricing."""

import asyncio
import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .app import Services, build_services
from .core.types import CardGuess, CardRef, Game, Language, VerifiedIdentity
from .pricing.valuation import refs_from_payload
from .search import search_cards
from .utils.error_handler import CardIdError, CardNotIdentifiedError
from .utils.log import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

console = Console()

app = typer.Typer(
    name="cardid",
    help="Trading card identification and verification across Pokemon, Yu-Gi-Oh!, One Piece and MTG catalogs",
    add_completion=False,
)


def _run(work) -> None:
    """Run one async command against fresh services, closing them afterwards."""

    async def runner():
        services = build_services()
        try:
            await work(services)
        finally:
            await services.aclose()

    try:
        asyncio.run(runner())
    except CardNotIdentifiedError as e:
        console.print(f"[red]❌ Could not identify card: {e.message}[/red]")
        raise typer.Exit(2)
    except (CardIdError, ValueError) as e:
        console.print(f"[red]❌ {e}[/red]")
        logger.error("Command failed", error=str(e))
        raise typer.Exit(1)


def _identity_table(identity: VerifiedIdentity, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    if identity.verified and identity.low_confidence:
        status = "[yellow]verified (number only)[/yellow]"
    elif identity.verified:
        status = "[green]verified[/green]"
    else:
        status = "[red]not verified[/red]"

    table.add_row("Status", status)
    table.add_row("Game", identity.game.value if identity.game else "")
    table.add_row("Name", identity.name)
    table.add_row("Card ID", identity.card_id or "[dim]-[/dim]")
    table.add_row("Set", identity.set_code or "[dim]-[/dim]")
    table.add_row("Set Name", identity.set_name or "[dim]-[/dim]")
    table.add_row("Rarity", identity.rarity or "[dim]-[/dim]")
    table.add_row("Strategy", identity.strategy or "[dim]-[/dim]")
    table.add_row("Oracle Passes", str(identity.attempts))
    return table


@app.command()
def identify(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Photo of the card"),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Deadline for the whole request in seconds"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Photo -> vision guess -> set resolution -> catalog verification."""

    async def work(services: Services):
        with console.status("[bold green]Identifying card...", spinner="dots"):
            identity = await services.orchestrator.identify_card(image.read_bytes(), timeout=timeout)
        if as_json:
            console.print_json(json.dumps(identity.to_dict()))
        else:
            console.print(_identity_table(identity, image.name))

    _run(work)


@app.command()
def verify(
    game: Game = typer.Argument(..., help="pokemon, yugioh, onepiece or mtg"),
    name: str = typer.Argument(..., help="Card name"),
    set_id: str = typer.Argument(..., help="Set code as printed or guessed"),
    number: str = typer.Argument(..., help="Collector number, e.g. 198/165 or LOB-EN005"),
    rarity: Optional[str] = typer.Option(None, "--rarity", "-r"),
    lang: Language = typer.Option(Language.EN, "--lang", "-l"),
    set_name: Optional[str] = typer.Option(None, "--set-name", "-s"),
):
    """Verify a manually entered guess without the vision oracle."""
    guess = CardGuess(
        game=game,
        name=name,
        set_id=set_id,
        card_number=number,
        set_name=set_name,
        rarity=rarity,
        language=lang,
    )

    async def work(services: Services):
        identity = await services.orchestrator.verify_guess(guess)
        console.print(_identity_table(identity, f"{name} ({set_id} #{number})"))

    _run(work)


@app.command("resolve-set")
def resolve_set(
    game: Game = typer.Argument(...),
    set_id: str = typer.Argument(..., help="Guessed set code"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Guessed set name"),
    lang: Language = typer.Option(Language.EN, "--lang", "-l"),
):
    """Resolve a guessed set code or name to the catalog's canonical code."""

    async def work(services: Services):
        code = await services.set_directory.resolve_set_id(game, set_id, name, lang)
        if code is None:
            console.print(f"[yellow]⚠ No {game.value} set matches '{set_id}'[/yellow]")
            raise typer.Exit(1)
        display = await services.set_directory.display_name(game, code, lang)
        console.print(f"[green]✓ {set_id} -> {code}[/green] [dim]{display or ''}[/dim]")

    _run(work)


@app.command()
def value(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help='JSON list of {"game", "cardId"}'),
):
    """Total market value of a collection file."""
    try:
        refs = refs_from_payload(json.loads(file.read_text(encoding="utf-8")))
    except (ValueError, TypeError) as e:
        console.print(f"[red]❌ Invalid collection file: {e}[/red]")
        raise typer.Exit(1)

    async def work(services: Services):
        with console.status(f"[bold green]Pricing {len(refs)} cards...", spinner="dots"):
            result = await services.valuator.value_collection(refs)

        table = Table(title="Collection Value")
        table.add_column("Game", style="cyan")
        table.add_column("Card ID", style="white")
        table.add_column("Name", style="white")
        table.add_column("Price", style="green", justify="right")
        for quote in result.quotes:
            price = f"${quote.price:.2f}" if quote.price is not None else "[dim]n/a[/dim]"
            table.add_row(quote.game.value, quote.card_id, quote.name, price)
        console.print(table)
        console.print(f"[bold]Total:[/bold] ${result.total_value:.2f} ({result.priced_count}/{len(result.quotes)} priced)")

    _run(work)


@app.command("sets")
def list_sets(
    game: Game = typer.Argument(..., help="pokemon, yugioh, onepiece or mtg"),
    lang: Language = typer.Option(Language.EN, "--lang", "-l"),
):
    """List a catalog's sets."""

    async def work(services: Services):
        sets = await services.set_directory.list_sets(game, lang)
        if not sets:
            console.print(f"[yellow]⚠ No {game.value} sets available[/yellow]")
            raise typer.Exit(1)
        table = Table(title=f"{game.value} sets ({len(sets)})")
        table.add_column("Code", style="cyan")
        table.add_column("Name", style="white")
        table.add_column("Cards", justify="right")
        table.add_column("Released", style="dim")
        for s in sets:
            table.add_row(s.code, s.display_name, str(s.total_card_count or ""), s.release_date or "")
        console.print(table)

    _run(work)


@app.command("set-cards")
def set_cards(
    game: Game = typer.Argument(...),
    set_id: str = typer.Argument(..., help="Set code, resolved like a guess"),
    lang: Language = typer.Option(Language.EN, "--lang", "-l"),
):
    """List the cards printed in one set."""

    async def work(services: Services):
        code = await services.set_directory.resolve_set_id(game, set_id, None, lang) or set_id
        client = services.clients.get(game)
        cards = await client.fetch_by_set(code, lang) if client else []
        if not cards:
            console.print(f"[yellow]⚠ No cards found in {game.value} set '{code}'[/yellow]")
            raise typer.Exit(1)
        table = Table(title=f"{code} ({len(cards)} cards)")
        table.add_column("Card ID", style="cyan")
        table.add_column("Number", justify="right")
        table.add_column("Name", style="white")
        table.add_column("Rarity", style="dim")
        for c in cards:
            table.add_row(c.card_id, c.number or "", c.name, c.rarity or "")
        console.print(table)

    _run(work)


@app.command()
def card(
    game: Game = typer.Argument(...),
    card_id: str = typer.Argument(..., help="Catalog card id, e.g. sv03.5-198 or LOB-EN005"),
    as_json: bool = typer.Option(False, "--json", help="Print the card as JSON"),
):
    """Show one card's catalog details and market price."""

    async def work(services: Services):
        detail = await services.valuator.get_card_detail(CardRef(game=game, card_id=card_id))
        if detail is None:
            console.print(f"[yellow]⚠ No {game.value} card with id '{card_id}'[/yellow]")
            raise typer.Exit(1)
        if as_json:
            console.print_json(json.dumps({**asdict(detail), "game": detail.game.value}))
            return
        table = Table(title=detail.name)
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="white")
        table.add_row("Card ID", detail.card_id)
        table.add_row("Set", f"{detail.set_code} {detail.set_name or ''}".strip())
        table.add_row("Number", detail.number or "[dim]-[/dim]")
        table.add_row("Rarity", detail.rarity or "[dim]-[/dim]")
        price = f"${detail.price:.2f} {detail.price_currency}" if detail.price is not None else "[dim]n/a[/dim]"
        table.add_row("Price", price)
        if detail.image_url:
            table.add_row("Image", detail.image_url)
        console.print(table)

    _run(work)


@app.command()
def search(
    query: str = typer.Argument(..., help="Card name to search for"),
    game: Optional[Game] = typer.Option(None, "--game", "-g", help="Limit to one game"),
):
    """Search card names across catalogs."""

    async def work(services: Services):
        hits = await search_cards(services.clients, query, game)
        if not hits:
            console.print(f"[yellow]⚠ No cards found for '{query}'[/yellow]")
            return
        table = Table(title=f"Results for '{query}'")
        table.add_column("Game", style="cyan")
        table.add_column("Card ID", style="white")
        table.add_column("Name", style="white")
        table.add_column("Set", style="white")
        table.add_column("Score", justify="right")
        for hit in hits:
            table.add_row(hit.game.value, hit.card_id, hit.name, hit.set_code, f"{hit.score:.0f}")
        console.print(table)

    _run(work)


def main():
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
