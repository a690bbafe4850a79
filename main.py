import argparse
import logging
import sys
from typing import List, Optional

from codec import HuffmanCode
from compressor import Compressor
from errors import EmptyAlphabetError, HuffmanError
from frequency import count_symbols, create_counter, print_char_count

logger = logging.getLogger("huffcode")


def get_parser():
    """Create and configure the CLI argument parser.

    :returns: Configured argument parser.
    :rtype: argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="huffcode",
        description="Huffman prefix coding for text files",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(
        title="subcommands", dest="cmd", required=True
    )

    count = subparsers.add_parser(
        "count", aliases=["c"], help="Print the character frequency table"
    )
    count.add_argument("file", help="Text file to analyse")

    codes = subparsers.add_parser(
        "codes", aliases=["t"], help="Print the Huffman code of every character"
    )
    codes.add_argument("file", help="Text file to analyse")

    encode = subparsers.add_parser(
        "encode", aliases=["e"], help="Compress a text file"
    )
    encode.add_argument("file", help="Text file to compress")
    encode.add_argument(
        "-o", "--output", required=True, help="Output container path"
    )
    encode.add_argument(
        "-P", "--no-progress", action="store_true", help="Hide progress"
    )

    decode = subparsers.add_parser(
        "decode", aliases=["d"], help="Restore a compressed text file"
    )
    decode.add_argument("file", help="Container to decompress")
    decode.add_argument(
        "-o", "--output", required=True, help="Restored text file path"
    )
    decode.add_argument(
        "-P", "--no-progress", action="store_true", help="Hide progress"
    )

    return parser


def _print_progress(line: str) -> None:
    """Render and flush a single progress line in-place (carriage return).

    :param line: The textual progress line to display.
    :type line: str
    :returns: None
    :rtype: None
    """
    sys.stdout.write("\r" + line)
    sys.stdout.flush()


def _fmt_pct(done: int, total: int) -> str:
    """Format a completion percentage string like ``12.34%``.

    :param done: Units completed.
    :type done: int
    :param total: Total units to complete.
    :type total: int
    :returns: Percentage.
    :rtype: str
    """
    if total <= 0:
        return "0%"
    pct = 100.0 * (done / float(total))
    return f"{pct:6.2f}%"


def _fmt_bytes(n: int) -> str:
    """Format a byte count into a human-readable string."""
    for unit in ['', 'Ki', 'Mi', 'Gi', 'Ti']:
        if abs(n) < 1024:
            return f"{n:.2f} {unit}B"
        n /= 1024
    return f"{n:.2f} PiB"


def _fmt_symbol(symbol: str) -> str:
    """Escape control characters so each listing entry stays on one line."""
    return repr(symbol)[1:-1] if not symbol.isprintable() else symbol


class Progress:
    """Callable progress reporter redrawing one line per percent step.

    :ivar label: Action label (e.g. ``"Encoding"``).
    :type label: str
    :ivar path: File being processed.
    :type path: str
    """

    def __init__(self, label: str, path: str) -> None:
        self.label = label
        self.path = path
        self._last_reported = -1

    def __call__(self, done: int, total: int) -> None:
        """Redraw the progress line when the whole percentage changes.

        :param done: Symbols processed.
        :type done: int
        :param total: Total symbols.
        :type total: int
        :returns: None
        :rtype: None
        """
        if total <= 0:
            return
        percent_bucket = int((done * 100) / total)
        if percent_bucket == self._last_reported:
            return
        self._last_reported = percent_bucket
        _print_progress(f"{self.label} {self.path}  {_fmt_pct(done, total)}")


def _read_text(path: str) -> Optional[str]:
    try:
        with open(path, "r", encoding="utf-8", newline="") as f:
            return f.read()
    except FileNotFoundError:
        print(f"[!] File not found: {path}")
    except UnicodeDecodeError:
        print(f"[!] Not a UTF-8 text file: {path}")
    return None


def count_file(path: str) -> int:
    """Print the character frequency table of a text file.

    :param path: Text file to read.
    :type path: str
    :returns: Process exit status.
    :rtype: int
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            counter = create_counter(f)
    except FileNotFoundError:
        print(f"[!] File not found: {path}")
        return 1
    except UnicodeDecodeError:
        print(f"[!] Not a UTF-8 text file: {path}")
        return 1
    print_char_count(counter)
    return 0


def show_codes(path: str) -> int:
    """Print the Huffman code assigned to every character of a text file.

    :param path: Text file to read.
    :type path: str
    :returns: Process exit status.
    :rtype: int
    """
    text = _read_text(path)
    if text is None:
        return 1
    try:
        code = HuffmanCode.from_frequencies(count_symbols(text))
    except EmptyAlphabetError:
        print(f"[!] Nothing to encode, {path} is empty")
        return 1
    print("Character Codes:")
    for symbol in sorted(code.table):
        bits = "".join(str(bit) for bit in code.table[symbol])
        print(f"'{_fmt_symbol(symbol)}': {bits}")
    print(f"Average code length: {code.average_code_length():.3f} bits")
    return 0


def encode_file(path: str, output_path: str, hide_progress: bool) -> int:
    """Compress a UTF-8 text file into a Huffman container.

    :param path: Text file to compress.
    :type path: str
    :param output_path: Destination container path.
    :type output_path: str
    :param hide_progress: Whether to suppress the progress line.
    :type hide_progress: bool
    :returns: Process exit status.
    :rtype: int
    """
    text = _read_text(path)
    if text is None:
        return 1
    on_prog = None if hide_progress else Progress("Encoding", path)
    data = Compressor().compress(text, on_progress=on_prog)
    if not hide_progress:
        sys.stdout.write("\n")
        sys.stdout.flush()
    with open(output_path, "wb") as out:
        out.write(data)

    original = len(text.encode("utf-8"))
    print("Size before compression: ", _fmt_bytes(original))
    print("Size after compression: ", _fmt_bytes(len(data)))
    print(f"Compression ratio: {original / len(data):.2f}")
    return 0


def decode_file(path: str, output_path: str, hide_progress: bool) -> int:
    """Restore a text file from a Huffman container.

    :param path: Container to read.
    :type path: str
    :param output_path: Destination text file.
    :type output_path: str
    :param hide_progress: Whether to suppress the progress line.
    :type hide_progress: bool
    :returns: Process exit status.
    :rtype: int
    """
    try:
        with open(path, "rb") as f:
            data = f.read()
    except FileNotFoundError:
        print(f"[!] File not found: {path}")
        return 1
    on_prog = None if hide_progress else Progress("Decoding", path)
    try:
        text = Compressor().decompress(data, on_progress=on_prog)
        restored = text.encode("utf-8")
    except (HuffmanError, UnicodeEncodeError) as e:
        print(f"[!] Cannot decode {path}: {e}")
        return 1
    finally:
        if not hide_progress:
            sys.stdout.write("\n")
            sys.stdout.flush()
    with open(output_path, "wb") as out:
        out.write(restored)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI tool.

    :param argv: Arguments to parse instead of ``sys.argv``.
    :type argv: Optional[List[str]]
    :returns: Process exit status.
    :rtype: int
    """
    parser = get_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.debug("Running %s on %s", args.cmd, args.file)

    if args.cmd in ["count", "c"]:
        return count_file(args.file)
    if args.cmd in ["codes", "t"]:
        return show_codes(args.file)
    if args.cmd in ["encode", "e"]:
        return encode_file(
            args.file, args.output, getattr(args, "no_progress", False)
        )
    return decode_file(
        args.file, args.output, getattr(args, "no_progress", False)
    )


if __name__ == "__main__":
    sys.exit(main())
