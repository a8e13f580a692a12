"""Test the importer facade, its options and the module-level wrappers."""
import asyncio
import codecs
import dataclasses
import io

import pytest

import csvimporter
from csvimporter.csv import (
    CsvImporter,
    EncodingError,
    Heuristic,
    ImporterConfig,
    ParseResult,
    StreamReadError,
)

from .utils import equal

CHINESE = "名称,状态\n任务一,打开\n"


def test_config_defaults():
    config = ImporterConfig()
    assert config.options() == {
        "delimiter": ",",
        "encoding": "utf-8",
        "skip_empty_lines": True,
        "header": True,
        "trim_fields": True,
        "auto_detect_encoding": True,
        "field_size_limit": None,
    }


def test_config_is_frozen():
    config = ImporterConfig()
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.delimiter = ";"

    assert config.replace(delimiter=";").delimiter == ";"
    assert config.delimiter == ","


@pytest.mark.parametrize(
    "options",
    [
        {"delimiter": ";;"},
        {"delimiter": '"'},
        {"field_size_limit": 0},
    ],
)
def test_config_invalid(options):
    with pytest.raises(ValueError):
        ImporterConfig(**options)


def test_config_from_options():
    config = ImporterConfig.from_options(
        {"skipEmptyLines": False, "trimFields": False, "autoDetectEncoding": False, "header": False}
    )
    assert not config.skip_empty_lines
    assert not config.trim_fields
    assert not config.auto_detect_encoding
    assert not config.header

    # Empty values mean defaults
    config = ImporterConfig.from_options({"delimiter": "", "encoding": None})
    assert (config.delimiter, config.encoding) == (",", "utf-8")

    base = ImporterConfig(delimiter=";")
    assert ImporterConfig.from_options({"header": False}, base=base).delimiter == ";"

    with pytest.raises(TypeError):
        ImporterConfig.from_options({"quotechar": "'"})


def test_set_and_get_options():
    importer = CsvImporter(delimiter=";")
    config = importer.config

    importer.set_options({"trimFields": False}, header=False)
    options = importer.get_options()
    assert options["delimiter"] == ";"
    assert options["trim_fields"] is False
    assert options["header"] is False

    # Replaced wholesale, the old config is untouched
    assert importer.config is not config
    assert config.header is True

    options["delimiter"] = "|"
    assert importer.config.delimiter == ";"


def test_read_file_bytes(board_csv):
    result = CsvImporter(board_csv.config).read_file(board_csv.csv.encode("utf-8"))
    assert isinstance(result, ParseResult)
    assert result.encoding == "utf-8"
    assert result.row_count == 2
    assert result.errors is None


def test_read_file_sources(tmp_path):
    data = CHINESE.encode("gbk")
    fp = tmp_path / "tasks.csv"
    fp.write_bytes(data)
    expected = [{"名称": "任务一", "状态": "打开"}]

    for source in (data, fp, str(fp), io.BytesIO(data)):
        result = CsvImporter().read_file(source)
        assert result.encoding == "gbk"
        assert equal(result.rows, expected)


def test_read_file_text_buffer():
    result = CsvImporter().read_file(io.StringIO("a,b\n1,2\n"))
    assert result.rows == [{"a": "1", "b": "2"}]
    assert result.encoding == "utf-8"


def test_read_file_text_buffer_bom():
    result = CsvImporter().read_file(io.StringIO("\ufeffa,b\n1,2\n"))
    assert result.headers == ["a", "b"]
    assert result.rows == [{"a": "1", "b": "2"}]


def test_read_file_bom():
    result = csvimporter.read_csv(codecs.BOM_UTF8 + b"Board,Name\nA,B\n")
    assert result.encoding == "utf-8"
    assert result.headers == ["Board", "Name"]
    assert result.rows == [{"Board": "A", "Name": "B"}]


def test_read_file_utf16():
    data = codecs.BOM_UTF16_LE + "a,b\n1,2\n".encode("utf-16le")
    result = csvimporter.read_csv(data)
    assert result.encoding == "utf-16le"
    assert result.rows == [{"a": "1", "b": "2"}]


def test_read_file_locale():
    data = "中文,測試\n甲,乙\n".encode("big5")
    result = csvimporter.read_csv(data, locale="zh-TW")
    assert result.encoding == "big5"
    assert result.rows == [{"中文": "甲", "測試": "乙"}]


def test_unsupported_encoding_is_fatal():
    importer = CsvImporter(encoding="klingon-8", autoDetectEncoding=False)
    with pytest.raises(EncodingError):
        importer.read_file(b"a,b\n1,2\n")


def test_wrong_fixed_encoding_is_fatal():
    importer = CsvImporter(encoding="utf-8", auto_detect_encoding=False)
    with pytest.raises(EncodingError):
        importer.read_file(CHINESE.encode("gbk"))


def test_missing_file(tmp_path):
    with pytest.raises(StreamReadError):
        CsvImporter().read_file(tmp_path / "missing.csv")


def test_custom_detector():
    class Always(Heuristic):
        def detect(self, data, mime_type=""):
            return "iso-8859-1"

    result = CsvImporter(detector=Always()).read_file("ä,b\n".encode("utf-8"))
    assert result.encoding == "iso-8859-1"
    assert result.headers == ["Ã¤", "b"]


def test_read_large_file_wrapper(tasks_csv):
    chunks = []
    csvimporter.read_large_file(
        tasks_csv.encode("utf-8"),
        lambda rows, headers: chunks.append(rows),
        chunk_size=2,
    )
    assert [len(rows) for rows in chunks] == [2, 2, 1]


def test_aread_large_file(tasks_csv):
    chunks = []

    async def on_chunk(rows, headers):
        chunks.append(rows)

    importer = CsvImporter()
    asyncio.run(importer.aread_large_file(tasks_csv.encode("utf-8"), on_chunk, chunk_size=4))
    assert [len(rows) for rows in chunks] == [4, 1]


def test_iter_chunks_encoding():
    chunks = list(CsvImporter().iter_chunks(CHINESE.encode("gbk")))
    assert [chunk.encoding for chunk in chunks] == ["gbk"]


def test_to_arrow(tasks_csv):
    tbl = csvimporter.read_csv(tasks_csv.encode("utf-8")).to_arrow()
    assert tbl.column_names == ["Board", "Name", "Status", "Notes"]
    assert tbl.num_rows == 5
    assert tbl.column("Notes").to_pylist()[2] == ""

    tbl = csvimporter.read_csv(tasks_csv.encode("utf-8")).to_arrow(empty_as_null=True)
    assert tbl.column("Notes").to_pylist()[2] is None


def test_to_arrow_no_header():
    result = csvimporter.read_csv(b",x\n1,2,3\n4\n", header=False)
    tbl = result.to_arrow()
    assert tbl.column_names == ["Unnamed_0", "Unnamed_1", "Unnamed_2"]
    assert tbl.column("Unnamed_2").to_pylist() == [None, "3", None]


def test_rich_views():
    result = csvimporter.read_csv(b"a,b\n1\n")
    text = csvimporter.log.pformat(result)
    assert "Column count mismatch" in text
    assert csvimporter.log.pformat(ImporterConfig())
