# product_analyzer/utils/render.py
import math
from typing import Iterable

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models import NOT_AVAILABLE, NormalizedResult


def format_stars(rating: float) -> str:
    """Five-character star bar: full stars, one half-star (shown as ⯪) when fractional, empty stars."""
    rating = max(0.0, min(5.0, rating))
    full = math.floor(rating)
    half = 1 if rating % 1 else 0
    empty = 5 - full - half
    return "★" * full + "⯪" * half + "☆" * empty


def _bullets(items: Iterable[str], style: str) -> Text:
    items = [i for i in items if i]
    if not items:
        return Text("No items", style="dim")
    text = Text()
    for i, item in enumerate(items):
        if i:
            text.append("\n")
        text.append("• ", style=style)
        text.append(item)
    return text


def render_result(result: NormalizedResult, console: Console) -> None:
    """Prints the analysis as a set of panels. Empty sections are left out."""
    overview = Text()
    overview.append(result.product_name, style="bold")
    overview.append("\n\n")
    overview.append(result.description if result.description != NOT_AVAILABLE else "No description available")
    console.print(Panel(overview, title="📋 Product Overview", expand=True))

    pros_cons = Table.grid(expand=True, padding=(0, 2))
    pros_cons.add_column(ratio=1)
    pros_cons.add_column(ratio=1)
    pros_cons.add_row(Text("✅ Advantages", style="bold green"), Text("❌ Disadvantages", style="bold red"))
    pros_cons.add_row(_bullets(result.pros, "green"), _bullets(result.cons, "red"))
    console.print(Panel(pros_cons, title="⚖️ Pros and Cons"))

    rating = Text()
    rating.append(f"{format_stars(result.rating)}  {result.rating:g}/5\n\n", style="bold yellow")
    rating.append(result.rating_justification if result.rating_justification != NOT_AVAILABLE
                  else "No justification provided")
    console.print(Panel(rating, title="⭐ Product Rating"))

    if result.current_price != NOT_AVAILABLE or result.other_website_prices:
        parts = []
        if result.current_price != NOT_AVAILABLE:
            parts.append(Text.assemble("Current price: ", (result.current_price, "bold")))
        if result.other_website_prices:
            prices = Table("Site", "Price", box=None)
            for quote in result.other_website_prices:
                prices.add_row(quote.site, quote.price)
            parts.append(prices)
        console.print(Panel(Group(*parts), title="💰 Pricing"))

    if result.recommendations != NOT_AVAILABLE:
        console.print(Panel(result.recommendations, title="💡 Recommendations"))
