import random
from typing import Dict, List, Sequence, Tuple

from date_parser import format_date
from models import Grid, PiecePosition
from solver.board import create_empty_calendar, day_position, month_position

BLOCKED_CHAR = "#"
DATE_CHAR = "*"
EMPTY_CHAR = "."

_MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
                 "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _color(name: str) -> str:
    # str hash() is salted per process; seed from the characters instead
    random.seed(sum((i + 1) * ord(ch) for i, ch in enumerate(name)) & 0xFFFFFFFF)
    r = random.randint(40, 200)
    g = random.randint(40, 200)
    b = random.randint(40, 200)
    return f"rgb({r},{g},{b})"

def format_grid(grid: Grid) -> str:
    """``[[1, 2],\\n [3, 4]]`` with one row per line."""
    rows = ["[" + ", ".join(str(v) for v in row) + "]" for row in grid.rows()]
    return "[" + ",\n ".join(rows) + "]"

def piece_letters(solution: Sequence[PiecePosition]) -> Dict[str, str]:
    return {p.name: chr(ord("A") + i) for i, p in enumerate(solution)}

def solution_cells(solution: Sequence[PiecePosition], day: int, month: int) -> List[List[str]]:
    """Board as a matrix of labels: a letter per piece, ``#`` blocked, ``*`` date."""
    empty = create_empty_calendar()
    cells = [[BLOCKED_CHAR if v else EMPTY_CHAR for v in row] for row in empty.rows()]
    for r, c in (day_position(day), month_position(month)):
        cells[r][c] = DATE_CHAR
    letters = piece_letters(solution)
    for p in solution:
        for r, c in p.covered_cells():
            cells[r][c] = letters[p.name]
    return cells

def render_solution_text(solution: Sequence[PiecePosition], day: int, month: int) -> str:
    return "\n".join(" ".join(row) for row in solution_cells(solution, day, month))

def _cell_caption(r: int, c: int) -> str:
    if r < 2:
        idx = r * 6 + c
        return _MONTH_LABELS[idx] if c < 6 else ""
    n = (r - 2) * 7 + c + 1
    return str(n) if n <= 31 else ""

def render_solution_svg(solution: Sequence[PiecePosition], day: int, month: int,
                        scale: int = 48) -> Tuple[str, str]:
    """Return (svg, legend_html) for one solution."""
    palette: Dict[str, str] = {}
    for p in solution:
        palette.setdefault(p.name, _color(p.name))

    empty = create_empty_calendar()
    rows, cols = empty.shape.rows, empty.shape.cols
    svg_w = cols * scale + 2
    svg_h = rows * scale + 2
    marked = {day_position(day), month_position(month)}

    rects = []
    for r in range(rows):
        for c in range(cols):
            x, y = 1 + c * scale, 1 + r * scale
            if empty.get(r, c):
                fill = "#333"
            elif (r, c) in marked:
                fill = "white"
            else:
                continue
            rects.append(
                f'<rect x="{x}" y="{y}" width="{scale}" height="{scale}" fill="{fill}" stroke="black" stroke-width="1"/>'
            )
            caption = _cell_caption(r, c) if (r, c) in marked else ""
            if caption:
                rects.append(
                    f'<text x="{x + scale // 2}" y="{y + scale // 2 + 5}" font-size="14" '
                    f'text-anchor="middle" fill="black">{caption}</text>'
                )

    letters = piece_letters(solution)
    for p in solution:
        for r, c in p.covered_cells():
            x, y = 1 + c * scale, 1 + r * scale
            rects.append(
                f'<rect x="{x}" y="{y}" width="{scale}" height="{scale}" fill="{palette[p.name]}" stroke="black" stroke-width="1"/>'
            )
        first = p.covered_cells()[0]
        rects.append(
            f'<text x="{1 + first[1] * scale + 4}" y="{1 + first[0] * scale + 14}" font-size="12" '
            f'fill="black">{letters[p.name]}</text>'
        )

    frame = f'<rect x="1" y="1" width="{svg_w-2}" height="{svg_h-2}" fill="none" stroke="black" stroke-width="2"/>'
    svg = (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{svg_w}" height="{svg_h}" '
        f'viewBox="0 0 {svg_w} {svg_h}" preserveAspectRatio="xMinYMin meet">'
        f'<title>{format_date(day, month)}</title>'
        f'{"".join(rects)}{frame}</svg>'
    )

    legend = "".join(
        f"<li><span class='swatch' style='background:{c}'></span>{letters[n]}: {n}</li>"
        for n, c in palette.items()
    )
    return svg, legend
