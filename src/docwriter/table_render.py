from typing import List, Sequence

from . import nodes
from .numbering import format_number
from .utils.typst_helpers import attach_label, indent_block

ALIGNMENTS = {
    'left': 'left',
    'center': 'center',
    'centre': 'center',
    'right': 'right',
    'default': 'auto',
    '': 'auto',
}


def column_alignment(alignment: Sequence[str], columns: int, warn=None) -> List[str]:
    """Map declared column alignment to Typst alignment values, one per column.

    Missing entries are ``auto``; unknown values become ``auto`` and are
    reported through ``warn(message)`` when given.
    """
    result = []
    for i in range(columns):
        value = alignment[i] if i < len(alignment) else ''
        key = (value or '').strip().lower()
        if key not in ALIGNMENTS:
            if warn is not None:
                warn(f"Unknown column alignment '{value}' in column {i + 1}; using auto")
            key = ''
        result.append(ALIGNMENTS[key])
    return result


def render_table_block(table: nodes.Table, ctx, render_cell, render_caption) -> str:
    """Render a Table node to a Typst table.

    - Ragged rows are padded with empty cells to a common column count
    - Column alignment is computed once and applied through ``align:``
    - The first row goes in ``table.header`` with bold cells when flagged
    - Rules above and below the table and under the header, no other strokes
    - A caption or an anchor turns the table into a numbered figure

    ``render_cell(cell, row, col)`` and ``render_caption()`` are supplied by the
    block renderer to avoid circular imports.
    """
    rows = table.rows
    max_cols = max((len(r) for r in rows), default=0)
    if max_cols == 0:
        ctx.warn('empty-table', "Table has no cells; skipped")
        return ""
    if any(len(r) != max_cols for r in rows):
        ctx.warn('ragged-table', f"Table rows padded to {max_cols} columns")

    aligns = column_alignment(table.alignment, max_cols, lambda m: ctx.warn('table-alignment', m))

    def cells(r: int, strong: bool) -> str:
        out = []
        row = rows[r]
        for c in range(max_cols):
            body = render_cell(row[c], r, c) if c < len(row) else ""
            if not body:
                out.append("[]")
            elif strong:
                out.append(f"[#strong[{body}]]")
            else:
                out.append(f"[{body}]")
        return ', '.join(out)

    parts = [
        "table(",
        f"  columns: ({', '.join(['auto'] * max_cols)},),",
        f"  align: ({', '.join(aligns)},),",
        "  stroke: none,",
        "  table.hline(),",
    ]
    start = 0
    if table.header:
        parts.append(f"  table.header({cells(0, strong=True)}),")
        parts.append("  table.hline(stroke: 0.5pt),")
        start = 1
    for r in range(start, len(rows)):
        parts.append(f"  {cells(r, strong=False)},")
    parts.append("  table.hline(),")
    parts.append(")")
    body = "\n".join(parts)

    location = ctx.location
    number = ctx.numbers.get(location)
    if number is None:
        return f"#{body}"

    figure = [
        "#figure(",
        indent_block(body) + ",",
        f"  numbering: (..) => \"{format_number(number)}\",",
    ]
    if table.caption:
        figure.append(f"  caption: [{render_caption()}],")
    figure.append(")")
    out = "\n".join(figure)
    anchor = ctx.declared.get(location)
    if anchor is not None:
        out += attach_label(anchor.label)
    return out
