from __future__ import annotations

from lifeview.content.rle import RlePattern, parse_rle

DEFAULT_PATTERN_NAME = "clock"

# All credit to these patterns' creators, see https://conwaylife.com/wiki/
BUILTIN_PATTERNS: dict[str, str] = {
    "10cellinfinitegrowth": "#N 10-cell infinite growth\nx = 8, y = 6, rule = B3/S23\n6bob$4bob2o$4bobob$4bo3b$2bo5b$obo!\n",
    "acorn": "#N Acorn\nx = 7, y = 3, rule = B3/S23\nbo5b$3bo3b$2o2b3o!\n",
    "blinker": "#N Blinker\nx = 3, y = 1, rule = B3/S23\n3o!\n",
    "clock": "#N Clock\nx = 4, y = 4, rule = B3/S23\n2bo$obo$bobo$bo!\n",
    "diehard": "#N Diehard\nx = 8, y = 3, rule = B3/S23\n6bob$2o6b$bo3b3o!\n",
    "glider": "#N Glider\nx = 3, y = 3, rule = B3/S23\nbo$2bo$3o!\n",
    "gosper-glider-gun": (
        "#N Gosper glider gun\n"
        "x = 36, y = 9, rule = B3/S23\n"
        "24bo$22bobo$12b2o6b2o12b2o$11bo3bo4b2o12b2o$2o8bo5bo3b2o$2o8bo3bob2o4b\n"
        "obo$10bo5bo7bo$11bo3bo$12b2o!\n"
    ),
    "lwss": "#N Lightweight spaceship\nx = 5, y = 4, rule = B3/S23\nbo2bo$o4b$o3bo$4o!\n",
    "r-pentomino": "#N R-pentomino\nx = 3, y = 3, rule = B3/S23\nb2o$2o$bo!\n",
}


def builtin_pattern(name: str) -> RlePattern:
    try:
        text = BUILTIN_PATTERNS[name]
    except KeyError:
        known = ", ".join(sorted(BUILTIN_PATTERNS))
        raise ValueError(f"unknown builtin pattern {name!r}; expected one of: {known}") from None
    return parse_rle(text)
