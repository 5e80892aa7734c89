"""Completion ledger - a markdown table of completions kept inside a note.

The ledger lives under a level-two heading:

    ## Completions
    | Completed | Due | Status | # |
    | --------- | --- | ------ | --- |
    | 2023-10-16T08:30:00 | 2023-10-15 | Done | 2 |
    | 2023-10-09T19:02:11 | 2023-10-08 | Done | 1 |

Rows are newest-first. Everything here is plain text surgery with no I/O.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from .dates import parse_moment

logger = logging.getLogger(__name__)

COL_COMPLETED = "Completed"
COL_DUE = "Due"
COL_STATUS = "Status"
COL_SEQUENCE = "#"

# Header labels used by older three-column ledgers
_TIMESTAMP_LABELS = {"completed", "date"}

_DIVIDER_CELL = re.compile(r"^:?-+:?$")
_SEQUENCE_CELL = re.compile(r"[0-9]+")


class Outcome(Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class LedgerFormat:
    """How the ledger is placed and rendered."""

    heading: str = "Completions"
    position: str = "bottom"
    datetime_format: str = "%Y-%m-%dT%H:%M:%S"
    completed_label: str = "Done"
    skipped_label: str = "Skipped"
    include_due_column: bool = True

    def columns(self) -> list[str]:
        if self.include_due_column:
            return [COL_COMPLETED, COL_DUE, COL_STATUS, COL_SEQUENCE]
        return [COL_COMPLETED, COL_STATUS, COL_SEQUENCE]

    def label(self, outcome: Outcome) -> str:
        if outcome is Outcome.COMPLETED:
            return self.completed_label
        return self.skipped_label

    def outcome_for(self, label: str) -> Outcome | None:
        if label == self.completed_label:
            return Outcome.COMPLETED
        if label == self.skipped_label:
            return Outcome.SKIPPED
        return None


@dataclass
class LedgerRow:
    """One parsed row of an existing ledger."""

    timestamp: str
    due: str | None
    outcome: Outcome | None
    sequence: int | None


@dataclass
class _Table:
    """Where the ledger sits in a list of lines."""

    heading: int
    start: int  # first table line (or insertion point when empty)
    end: int  # one past the last table line
    header: list[str] | None  # None when the fragment is malformed

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    @property
    def body_start(self) -> int:
        return self.start + 2


def format_timestamp(value: str | date | datetime, datetime_format: str) -> str:
    """Render a timestamp with a strftime format."""
    return parse_moment(value).value.strftime(datetime_format)


def _escape(cell: str) -> str:
    return cell.replace("|", "\\|")


def _render_row(cells: list[str]) -> str:
    return "| " + " | ".join(_escape(c) for c in cells) + " |"


def _render_divider(columns: list[str]) -> str:
    return "| " + " | ".join("-" * max(3, len(c)) for c in columns) + " |"


def _split_cells(line: str) -> list[str]:
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|") and not stripped.endswith("\\|"):
        stripped = stripped[:-1]
    cells = re.split(r"(?<!\\)\|", stripped)
    return [c.strip().replace("\\|", "|") for c in cells]


def _is_table_line(line: str) -> bool:
    return line.lstrip().startswith("|")


def _is_divider(cells: list[str]) -> bool:
    return bool(cells) and all(_DIVIDER_CELL.match(c) for c in cells)


def _find_heading(lines: list[str], heading: str) -> int | None:
    pattern = re.compile(rf"^##\s+{re.escape(heading.strip())}\s*$")
    for i, line in enumerate(lines):
        if pattern.match(line.rstrip()):
            return i
    return None


def _locate(lines: list[str], heading: str) -> _Table | None:
    """Find the ledger heading and the table fragment beneath it."""
    heading_index = _find_heading(lines, heading)
    if heading_index is None:
        return None

    i = heading_index + 1
    while i < len(lines) and not lines[i].strip():
        i += 1
    if i >= len(lines) or not _is_table_line(lines[i]):
        # Heading with no table: insertion point is right under the heading
        return _Table(heading=heading_index, start=heading_index + 1, end=heading_index + 1, header=None)

    start = i
    while i < len(lines) and _is_table_line(lines[i]):
        i += 1

    header = None
    if i - start >= 2:
        header_cells = _split_cells(lines[start])
        divider_cells = _split_cells(lines[start + 1])
        if (
            not _is_divider(header_cells)
            and _is_divider(divider_cells)
            and len(divider_cells) == len(header_cells)
        ):
            header = header_cells

    return _Table(heading=heading_index, start=start, end=i, header=header)


def _sequence_index(header: list[str]) -> int:
    if COL_SEQUENCE in header:
        return header.index(COL_SEQUENCE)
    return len(header) - 1


def _column_index(header: list[str], labels: set[str]) -> int | None:
    for i, label in enumerate(header):
        if label.lower() in labels:
            return i
    return None


def _parse_rows(lines: list[str], table: _Table, fmt: LedgerFormat) -> list[LedgerRow]:
    header = table.header or []
    seq_index = _sequence_index(header)
    ts_index = _column_index(header, _TIMESTAMP_LABELS)
    due_index = _column_index(header, {COL_DUE.lower()})
    status_index = _column_index(header, {COL_STATUS.lower()})

    rows = []
    for line in lines[table.body_start:table.end]:
        cells = _split_cells(line)

        def cell(index: int | None) -> str | None:
            if index is None or index >= len(cells):
                return None
            return cells[index]

        seq_text = cell(seq_index)
        status = cell(status_index)
        rows.append(
            LedgerRow(
                timestamp=cell(ts_index if ts_index is not None else 0) or "",
                due=cell(due_index) or None,
                outcome=fmt.outcome_for(status) if status is not None else None,
                sequence=int(seq_text) if seq_text and _SEQUENCE_CELL.fullmatch(seq_text) else None,
            )
        )
    return rows


def _split_lines(text: str) -> tuple[list[str], str]:
    """Lines of `text` and the newline it uses (CRLF if present, else LF)."""
    newline = "\r\n" if "\r\n" in text else "\n"
    return text.split(newline), newline


def _next_sequence(rows: list[LedgerRow]) -> int:
    return max((r.sequence for r in rows if r.sequence is not None), default=0) + 1


def read_ledger(text: str, fmt: LedgerFormat) -> list[LedgerRow]:
    """Rows of the document's ledger, newest first. Empty if missing or malformed."""
    lines, _ = _split_lines(text)
    table = _locate(lines, fmt.heading)
    if table is None or table.header is None:
        return []
    return _parse_rows(lines, table, fmt)


def next_sequence_number(text: str, fmt: LedgerFormat) -> int:
    """
    Sequence number the next appended row will get.

    One more than the highest number present; rows without a numeric
    sequence cell are ignored.
    """
    return _next_sequence(read_ledger(text, fmt))


def _row_values(
    timestamp: str | date | datetime,
    outcome: Outcome,
    fmt: LedgerFormat,
    due: str | date | datetime | None,
) -> dict[str, str]:
    if isinstance(due, (date, datetime)):
        due_text = due.isoformat()
    else:
        due_text = due or ""
    return {
        COL_COMPLETED: format_timestamp(timestamp, fmt.datetime_format),
        COL_DUE: due_text,
        COL_STATUS: fmt.label(outcome),
    }


def _fresh_table(values: dict[str, str], fmt: LedgerFormat) -> list[str]:
    columns = fmt.columns()
    values = {**values, COL_SEQUENCE: "1"}
    cells = [values[c] for c in columns]
    return [_render_row(columns), _render_divider(columns), _render_row(cells)]


def _row_for_header(header: list[str], values: dict[str, str], sequence: int) -> str:
    """Lay out a new row to match an existing table's own column order."""
    by_label = {k.lower(): v for k, v in values.items()}
    by_label["date"] = values[COL_COMPLETED]
    cells = [by_label.get(label.lower(), "") for label in header]
    cells[_sequence_index(header)] = str(sequence)
    return _render_row(cells)


def _frontmatter_end(lines: list[str]) -> int | None:
    """Index of the closing '---' line of a leading properties block."""
    if not lines or lines[0].strip() != "---":
        return None
    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            return i
    return None


def _insert_block(lines: list[str], index: int, block: list[str]) -> list[str]:
    """Insert a block, keeping a blank line between it and following text."""
    rest = lines[index:]
    if rest and rest[0].strip():
        block = block + [""]
    return lines[:index] + block + rest


def _create_section(lines: list[str], table: list[str], fmt: LedgerFormat) -> list[str]:
    section = [f"## {fmt.heading.strip()}", *table]

    if fmt.position == "top":
        fm_end = _frontmatter_end(lines)
        if fm_end is None:
            return _insert_block(lines, 0, section)
        return _insert_block(lines, fm_end + 1, ["", *section])

    body = list(lines)
    while body and not body[-1].strip():
        body.pop()
    if body:
        body.append("")
    return body + section + [""]


def append_record(
    text: str,
    timestamp: str | date | datetime,
    outcome: Outcome,
    fmt: LedgerFormat,
    due: str | date | datetime | None = None,
) -> str:
    """
    Append one completion record to the document's ledger.

    - No heading: create heading and table at the top (after the properties
      block) or at the bottom, per fmt.position.
    - Heading without a valid table (header + divider): rebuild the table in
      place, discarding the broken fragment.
    - Valid table: insert a row directly under the divider, numbered one past
      the highest existing sequence number.

    Every call adds exactly one row.
    """
    lines, newline = _split_lines(text)
    values = _row_values(timestamp, outcome, fmt, due)
    table = _locate(lines, fmt.heading)

    if table is None:
        logger.debug(f"Creating ledger section '{fmt.heading}' at {fmt.position}")
        lines = _create_section(lines, _fresh_table(values, fmt), fmt)
        return newline.join(lines)

    if table.header is None:
        if not table.is_empty:
            logger.debug(f"Rebuilding malformed ledger table under '{fmt.heading}'")
        fresh = _fresh_table(values, fmt)
        if table.is_empty:
            lines = _insert_block(lines, table.start, fresh)
        else:
            lines = lines[:table.start] + fresh + lines[table.end:]
        return newline.join(lines)

    sequence = _next_sequence(_parse_rows(lines, table, fmt))
    new_row = _row_for_header(table.header, values, sequence)
    lines = lines[:table.body_start] + [new_row] + lines[table.body_start:]
    return newline.join(lines)
