"""Formatting of the con-consumer exit summary."""

from __future__ import annotations
import logging
import string
from typing import Any

lgr = logging.getLogger("con-consumer")


class SummaryFormatter(string.Formatter):
    """:class:`string.Formatter` with the conversions used by the exit summary.

    ``!S`` renders a byte count in binary units, ``!N`` marks a missing value
    and ``!X`` colors a flag by its truthiness.  Missing values print as
    :attr:`NONE`.  ANSI colors are only emitted with `enable_colors`.
    """

    NONE = "-"
    RED, GREEN = 31, 32
    COLOR_SEQ = "\033[1;%dm"
    RESET_SEQ = "\033[0m"
    UNITS = ("KiB", "MiB", "GiB", "TiB", "PiB", "EiB")

    def __init__(self, enable_colors: bool = False) -> None:
        self.enable_colors = enable_colors

    def naturalsize(self, value: float | str, precision: int = 1) -> str:
        """Render `value` bytes using binary units.

        >>> SummaryFormatter().naturalsize(1024 ** 3)
        '1.0 GiB'
        >>> SummaryFormatter().naturalsize(3000, precision=3)
        '2.930 KiB'
        """
        size = float(value)
        if abs(size) < 1024:
            count = int(size)
            return f"{count} Byte" if abs(count) == 1 else f"{count} Bytes"
        for unit in self.UNITS:
            size /= 1024
            if abs(size) < 1024:
                break
        return f"{size:.{precision}f} {unit}"

    def colorize(self, text: str, ok: bool) -> str:
        if not self.enable_colors:
            return text
        color = self.GREEN if ok else self.RED
        return f"{self.COLOR_SEQ % color}{text}{self.RESET_SEQ}"

    def convert_field(self, value: Any, conversion: str | None) -> Any:
        if conversion in ("S", "N") and value is None:
            return self.colorize(self.NONE, ok=False)
        if conversion == "S":
            return self.colorize(self.naturalsize(value), ok=True)
        if conversion == "N":
            return self.colorize(str(value), ok=True)
        if conversion == "X":
            text = self.NONE if value is None else str(value)
            return self.colorize(text, ok=bool(value))
        return super().convert_field(value, conversion)

    def format_field(self, value: Any, format_spec: str) -> Any:
        if value is None:
            return self.NONE
        try:
            return super().format_field(value, format_spec)
        except ValueError as exc:
            lgr.warning(
                "Cannot format %r with %r (%s), printing it as is",
                value,
                format_spec,
                exc,
            )
            return str(value)
