from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

_HEADER_DIMENSION = re.compile(r"\b(?P<axis>[xy])\s*=\s*(?P<value>\d+)", re.IGNORECASE)
_HEADER_RULE = re.compile(r"\brule\s*=\s*(?P<rule>[^,\s]+)", re.IGNORECASE)


class RleParseError(ValueError):
    """Raised when pattern text is not valid run-length-encoded Life data."""


@dataclass(frozen=True)
class RlePattern:
    """Decoded pattern; ``cells`` is row-major, ``width`` cells per row."""

    cells: tuple[bool, ...]
    width: int
    height: int
    rule: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("pattern width and height must be > 0")
        if len(self.cells) != self.width * self.height:
            raise ValueError(
                f"pattern has {len(self.cells)} cells, expected {self.width}x{self.height}"
            )

    @property
    def population(self) -> int:
        return sum(self.cells)


def _decode_body(body: str, width: int, height: int) -> list[bool]:
    cells = [False] * (width * height)
    x = 0
    y = 0
    run = ""
    for char in body:
        if char.isdigit():
            run += char
            continue
        count = int(run) if run else 1
        run = ""
        if char == "!":
            return cells
        if char == "$":
            y += count
            x = 0
            continue
        if char == "b" or char == ".":
            x += count
            continue
        if char.isalpha():
            if y >= height or x + count > width:
                raise RleParseError(f"pattern data overflows the declared {width}x{height} box at row {y}")
            for offset in range(count):
                cells[y * width + x + offset] = True
            x += count
            continue
        raise RleParseError(f"unexpected character {char!r} in pattern data")
    if run:
        raise RleParseError("pattern data ends with a dangling run count")
    return cells


def _strip_grid_suffix(rule: str) -> str:
    # Drops a bounded-grid suffix such as ":P10,10".
    return rule.split(":", 1)[0]


def parse_rle(text: str) -> RlePattern:
    name: str | None = None
    header: str | None = None
    body_lines: list[str] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if header is None:
            if line.startswith("#"):
                if line[1:2] == "N":
                    name = line[2:].strip() or None
                continue
            header = line
            continue
        if line.startswith("#"):
            continue
        body_lines.append(line)
        if "!" in line:
            break

    if header is None:
        raise RleParseError("missing 'x = .., y = ..' header line")
    dimensions = {match.group("axis").lower(): int(match.group("value")) for match in _HEADER_DIMENSION.finditer(header)}
    if "x" not in dimensions or "y" not in dimensions:
        raise RleParseError(f"header line does not declare x and y: {header!r}")
    width = dimensions["x"]
    height = dimensions["y"]
    if width <= 0 or height <= 0:
        raise RleParseError(f"invalid pattern dimensions x={width}, y={height}")
    rule_match = _HEADER_RULE.search(header)

    cells = _decode_body("".join("".join(body_lines).split()), width, height)
    return RlePattern(
        cells=tuple(cells),
        width=width,
        height=height,
        rule=_strip_grid_suffix(rule_match.group("rule")) if rule_match else None,
        name=name,
    )


def load_rle(path: str | Path) -> RlePattern:
    return parse_rle(Path(path).read_text(encoding="utf-8"))
