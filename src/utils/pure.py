from decimal import Decimal
from typing import List, Literal, Optional

from api.models import OrderSummary


def format_money(amount: Decimal) -> str:
    """Currency amounts are shown with two decimals, e.g. $1299.00"""
    return f"${Decimal(amount).quantize(Decimal('0.01'))}"


def format_rating(rating: int) -> str:
    rating = max(0, min(5, int(rating)))
    return "★" * rating + "☆" * (5 - rating)


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(str, headers))
    rows = [list(map(str, row)) for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def order_summary_table(summary: OrderSummary) -> str:
    """Markdown table of the order details shown under the cart."""
    rows = [
        ["Products", summary.item_count],
        ["Subtotal", format_money(summary.subtotal)],
        ["Shipping Charges", format_money(summary.shipping)],
        ["**Total**", f"**{format_money(summary.total)}**"],
    ]
    return generate_markdown_table(["Order Details", ""], rows, ["l", "r"])
