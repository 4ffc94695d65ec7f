"""Small text helpers used to format the test report."""


def repeat_string(string: str, count: int) -> str:
    """Return ``string`` repeated ``count`` times (empty for count <= 0)."""
    return string * max(count, 0)


def prefix_lines(prefix: str, text: str) -> list[str]:
    """Prefix every line of ``text`` with ``prefix``.

    An empty ``text`` still yields a single prefixed line, so that blank
    notes keep their place in the report.

    Args:
        prefix: String prepended to each line.
        text: Possibly multi-line text. A single trailing newline is ignored.

    Returns:
        The prefixed lines, without line terminators.

    Example:
        >>> prefix_lines("# ", "a\\nb")
        ['# a', '# b']
    """
    if text.endswith("\n"):
        text = text[:-1]
    return [f"{prefix}{line}" for line in text.split("\n")]


def decode(data: bytes) -> str:
    """Decode captured bytes for display, replacing undecodable sequences."""
    return data.decode("utf-8", errors="replace")
