"""Shared fixtures."""
from dataclasses import dataclass
from inspect import cleandoc

import pytest

from csvimporter.csv import ImporterConfig


@dataclass
class TestCase:
    name: str
    config: ImporterConfig
    csv: str


@pytest.fixture
def board_csv() -> TestCase:

    return TestCase(
        name="board",
        config=ImporterConfig(header=True, delimiter=",", skip_empty_lines=True),
        csv=cleandoc(
            """
            Board,Name,Status
            A,Task1,Open

            B,Task2,
            """
        ),
    )


@pytest.fixture
def tasks_csv() -> str:
    return (
        'Board,Name,Status,Notes\r\n'
        'A,Task1,Open,"first, and foremost"\r\n'
        'A,Task2,Closed,"said ""done"""\r\n'
        'B,Task3,Open,\r\n'
        '\r\n'
        'B,Task4,Blocked,waiting\r\n'
        'C,Task5,Open,"a;b"\r\n'
    )
