"""Command-line interface."""
from pathlib import Path
from typing import Optional

import typer

from . import CsvImporter, ImporterConfig
from .log import LOG, pformat, rows_view
from .utils import Timer

CLI = typer.Typer()


def make_importer(
    delimiter: str,
    encoding: str,
    header: bool,
    skip_empty_lines: bool,
    trim: bool,
    auto_detect: bool,
    locale: Optional[str],
    log: bool,
) -> CsvImporter:
    try:
        config = ImporterConfig(
            delimiter=delimiter,
            encoding=encoding,
            header=header,
            skip_empty_lines=skip_empty_lines,
            trim_fields=trim,
            auto_detect_encoding=auto_detect,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    return CsvImporter(config, locale=locale, log=log)


@CLI.command()
def read(
    fp: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, resolve_path=True),
    delimiter: str = typer.Option(","),
    encoding: str = typer.Option("utf-8", help="Encoding used if auto-detection is disabled."),
    header: bool = typer.Option(True),
    skip_empty_lines: bool = typer.Option(True),
    trim: bool = typer.Option(True),
    auto_detect: bool = typer.Option(True),
    locale: Optional[str] = typer.Option(None, help="User locale, e.g. zh-TW."),
    log: Optional[bool] = typer.Option(False),
):
    """Read a whole CSV file in memory."""
    importer = make_importer(
        delimiter, encoding, header, skip_empty_lines, trim, auto_detect, locale, log
    )

    with Timer() as t:
        result = importer.read_file(fp)

    LOG.info(pformat(result))
    LOG.info(f"Import took {t.elapsed:.2f} seconds.")


@CLI.command()
def stream(
    fp: Path = typer.Argument(..., exists=True, file_okay=True, dir_okay=False, resolve_path=True),
    chunk_size: int = typer.Option(1000, min=1),
    delimiter: str = typer.Option(","),
    encoding: str = typer.Option("utf-8", help="Encoding used if auto-detection is disabled."),
    header: bool = typer.Option(True),
    skip_empty_lines: bool = typer.Option(True),
    trim: bool = typer.Option(True),
    auto_detect: bool = typer.Option(True),
    locale: Optional[str] = typer.Option(None, help="User locale, e.g. zh-TW."),
    log: Optional[bool] = typer.Option(False),
):
    """Stream a CSV file in chunks of rows."""
    importer = make_importer(
        delimiter, encoding, header, skip_empty_lines, trim, auto_detect, locale, log
    )
    n_rows = n_chunks = 0
    chunk = None

    with Timer() as t:
        for chunk in importer.iter_chunks(fp, chunk_size=chunk_size):
            n_chunks += 1
            n_rows += len(chunk.rows)
            LOG.info(f"Chunk {n_chunks}: {len(chunk.rows):,} rows ({n_rows:,} total).")

    if chunk is not None:
        LOG.info(f"Encoding: {chunk.encoding}")
        LOG.info(pformat(rows_view(chunk.headers, chunk.rows, title="Last chunk")))

    LOG.info(f"Streamed {n_rows:,} rows in {n_chunks:,} chunks, took {t.elapsed:.2f} seconds.")
