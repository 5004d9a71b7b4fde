import pytest
from con_consumer._formatter import SummaryFormatter

GREEN_START = SummaryFormatter.COLOR_SEQ % SummaryFormatter.GREEN
RED_START = SummaryFormatter.COLOR_SEQ % SummaryFormatter.RED


@pytest.mark.parametrize(
    "value,expected",
    [
        (0, "0 Bytes"),
        (1, "1 Byte"),
        (1023, "1023 Bytes"),
        (1024, "1.0 KiB"),
        (1024 * 1024, "1.0 MiB"),
        (1024**3, "1.0 GiB"),
        (16 * 1024**3, "16.0 GiB"),
        (3 * 1024**4, "3.0 TiB"),
    ],
)
def test_naturalsize(value: int, expected: str) -> None:
    assert SummaryFormatter().naturalsize(value) == expected


def test_summary_formatter_no_vars() -> None:
    assert SummaryFormatter().format("test") == "test"


def test_summary_formatter_none_value() -> None:
    out = SummaryFormatter().format("{memory!S} {cores:.1f}", memory=None, cores=None)
    assert out == "- -"


def test_summary_formatter_size_colors() -> None:
    formatter = SummaryFormatter(enable_colors=True)
    assert GREEN_START in formatter.format("{m!S}", m=2048)
    assert "2.0 KiB" in formatter.format("{m!S}", m=2048)
    assert RED_START in formatter.format("{m!S}", m=None)


def test_summary_formatter_no_colors() -> None:
    out = SummaryFormatter().format("{c!X} {n!N}", c=False, n=None)
    assert GREEN_START not in out
    assert RED_START not in out
    assert out == "False -"


def test_summary_formatter_bad_format_falls_back(
    caplog: pytest.LogCaptureFixture,
) -> None:
    out = SummaryFormatter().format("{v:.3f}", v="abc")
    assert out == "abc"
    assert "Cannot format 'abc' with '.3f'" in caplog.text


def test_summary_formatter_flag_colors() -> None:
    formatter = SummaryFormatter(enable_colors=True)
    assert formatter.format("{c!X}", c=True) == f"{GREEN_START}True\033[0m"
    assert formatter.format("{c!X}", c=False) == f"{RED_START}False\033[0m"
    assert formatter.format("{n!N}", n=3) == f"{GREEN_START}3\033[0m"
    assert formatter.format("{n!N}", n=None) == f"{RED_START}-\033[0m"
