import sys
from collections import Counter
from typing import Iterable, List, Mapping, Optional, TextIO


def _strip_line_ending(line: str) -> str:
    if line.endswith("\n"):
        line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]
    return line


def create_counter(stream: Iterable[str]) -> Counter:
    """Count the characters of a text stream, line by line.

    Line terminators (``\\n`` and ``\\r\\n``) are not counted.

    :param stream: Text file object or any iterable of lines.
    :type stream: Iterable[str]
    :returns: Mapping from character to occurrence count.
    :rtype: Counter
    """
    counter: Counter = Counter()
    for line in stream:
        counter.update(_strip_line_ending(line))
    return counter


def count_symbols(text: str) -> Counter:
    """Count every character of ``text``, newlines included."""
    return Counter(text)


def format_char_count(counter: Mapping[str, int]) -> List[str]:
    """Render a frequency table, one ``'{symbol}': {count}`` line per symbol.

    Symbols are sorted by code point, under a ``Character Frequency:`` title.
    """
    lines = ["Character Frequency:"]
    for symbol in sorted(counter):
        lines.append(f"'{symbol}': {counter[symbol]}")
    return lines


def print_char_count(counter: Mapping[str, int],
                     file: Optional[TextIO] = None) -> None:
    out = file if file is not None else sys.stdout
    for line in format_char_count(counter):
        print(line, file=out)
