"""Helpers to pretty print/log objects using Rich."""
from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import Any

from rich import box, get_console
from rich.padding import Padding
from rich.panel import Panel
from rich.pretty import Pretty
from rich.table import Table
from rich.text import Text

CONSOLE = get_console()

BOX = box.HORIZONTALS


class ColoredFormatter(logging.Formatter):
    """A custom formatter controlling message color."""

    RESET = "\x1b[0m"

    FORMAT = "<COL>{asctime} {levelname} | {name} | {module}.{funcName}:{lineno}<RESET> \n{message}"

    COLORS = {
        logging.DEBUG: "\x1b[38;20m",  # grey
        logging.INFO: "\x1b[38;20m",  # grey
        logging.WARNING: "\x1b[33;1m",  # bold yellow
        logging.ERROR: "\x1b[31;1m",  # bold red
        logging.CRITICAL: "\x1b[31;1m",  # bold red
    }

    def __init__(self, datefmt=None, validate=True):
        super().__init__(self.FORMAT, style="{", datefmt=datefmt, validate=validate)

    def format(self, record):
        msg = super().format(record)
        col = self.COLORS.get(record.levelno)
        return msg.replace("<COL>", col).replace("<RESET>", self.RESET)


def setup_logging(level=logging.DEBUG, color=True):
    """Ensure logging handler is only added once."""
    date_fmt = "%H:%M:%S"
    if color:
        fmt = ColoredFormatter(datefmt=date_fmt)
    else:
        fmt = logging.Formatter(
            "{asctime} {levelname} | {name} | {module}.{funcName}:{lineno} \n{message}",
            datefmt=date_fmt,
            style="{",
        )

    logger = logging.getLogger("csvimporter")
    logger.setLevel(level)

    if not logger.handlers:
        _sh = logging.StreamHandler(sys.stdout)
        _sh.setFormatter(fmt)
        logger.addHandler(_sh)

    return logger


LOG = setup_logging(level=logging.INFO, color=True)


def pformat(obj, console=None, markup=True, end="", strip=False, **kwargs):
    """Pretty format any object, if possible with Rich."""
    console = console or CONSOLE

    with console.capture() as capture:
        console.print(obj, markup=markup, end=end)

    result = capture.get()

    if strip:
        result = result.strip()

    return result


def dict_view(
    d: dict, title: str = "", expand: bool = False, width=None, padding=1, **kwds
) -> Panel:
    dv = Pretty(d, **kwds)
    p = Panel(dv, expand=expand, title=title, width=width, box=BOX)
    return Padding(p, padding)


def rows_view(
    headers: Sequence[str] | None,
    rows: Sequence[dict | list],
    title: str | None = None,
    n_rows_max: int = 10,
    n_columns_max: int = 6,
    max_column_width: int = 20,
    padding: int = 1,
) -> Padding:
    """Rich table previewing parsed records, either header-keyed or positional."""

    if headers is not None:
        columns = list(dict.fromkeys(headers))
    else:
        columns = [str(i) for i in range(max((len(row) for row in rows), default=0))]

    truncated = len(columns) > n_columns_max
    columns = columns[:n_columns_max]

    style = "bold indian_red1"
    caption = Text.from_markup(
        f"[{style}]{len(rows):,}[/] rows ✕ [{style}]{len(columns)}[/] columns"
    )

    table = Table(
        title=title,
        caption=caption,
        title_justify="left",
        caption_justify="left",
        box=BOX,
    )

    for name in columns:
        table.add_column(name, max_width=max_column_width, overflow="crop", no_wrap=True)
    if truncated:
        table.add_column("...")

    def cells(row: Any) -> list[str]:
        if isinstance(row, dict):
            values = [row.get(col, "") for col in columns]
        else:
            values = [row[i] if i < len(row) else "" for i in range(len(columns))]
        return values + ["..."] if truncated else values

    sample = rows[:n_rows_max]
    for row in sample:
        table.add_row(*cells(row))

    if len(sample) < len(rows):
        table.add_row(*["..."] * (len(columns) + truncated), end_section=True)

    return Padding(table, padding)


def errors_view(errors: Sequence[Any], title: str | None = "Errors", n_max: int = 20) -> Padding:
    """Rich table listing row-level parse errors."""

    t = Table(title=title, title_justify="left", box=BOX)
    t.add_column("Row", justify="right", style="indian_red1", no_wrap=True)
    t.add_column("Field", style="yellow3")
    t.add_column("Message")

    for error in errors[:n_max]:
        t.add_row(str(error.row), error.field or "", error.message)

    if len(errors) > n_max:
        t.add_row("...", "...", f"{len(errors) - n_max} more")

    return Padding(t, 1)
