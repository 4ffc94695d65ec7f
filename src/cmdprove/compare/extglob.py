"""Extended shell-glob patterns, matched the way bash ``extglob`` does.

Grammar accepted by :func:`match`::

    pattern   := item*
    item      := '*' | '?' | bracket | group | escape | literal
    group     := OP '(' alt ('|' alt)* ')'        OP is one of + * ? @ !
    bracket   := '[' ('!' | '^')? ']'? members ']'
    escape    := '\\' any

Rules:

- ``*`` matches any run of characters and ``?`` exactly one; both match
  ``/`` and newlines, because subjects are whole command outputs, not paths.
- ``+(a|b)`` one or more, ``*(a|b)`` zero or more, ``?(a|b)`` zero or one,
  ``@(a|b)`` exactly one of the alternatives.
- ``!(a|b)`` matches any run of characters, the empty one included, that
  none of the alternatives matches in full. The items around it take the
  rest, so ``!(foo)*`` matches ``foo`` (the group takes the empty string).
  Patterns with a negated group are matched offset by offset; all others
  are compiled to a regular expression.
- ``(`` not preceded by an operator, and ``|`` or ``)`` outside a group, are
  literal characters.
- A bracket expression without a closing ``]`` is a literal ``[``. Members
  may be ranges (``a-z``) or POSIX classes (``[:digit:]``).
- An unterminated group or a trailing lone backslash raises PatternError.

Matching is always against the complete subject.
"""
from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field

from cmdprove.core.domain import PatternError

GROUP_OPS = "+*?@!"

POSIX_CLASSES = {
    "alnum": "a-zA-Z0-9",
    "alpha": "a-zA-Z",
    "blank": " \\t",
    "cntrl": "\\x00-\\x1f\\x7f",
    "digit": "0-9",
    "graph": "\\x21-\\x7e",
    "lower": "a-z",
    "print": "\\x20-\\x7e",
    "punct": re.escape("!\"#$%&'()*+,-./:;<=>?@[\\]^_`{|}~"),
    "space": "\\s",
    "upper": "A-Z",
    "word": "\\w",
    "xdigit": "0-9A-Fa-f",
}


@dataclass
class _Node:
    kind: str
    text: str = ""
    op: str = ""
    alts: list[list[_Node]] = field(default_factory=list)


class _Parser:
    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.pos = 0

    def parse(self) -> list[_Node]:
        nodes = self._sequence(in_group=False)
        if self.pos < len(self.pattern):
            raise PatternError(f"Unexpected character at {self.pos} in pattern: {self.pattern!r}")
        return nodes

    def _sequence(self, in_group: bool) -> list[_Node]:
        nodes: list[_Node] = []
        pattern = self.pattern
        while self.pos < len(pattern):
            char = pattern[self.pos]
            if in_group and char in "|)":
                break
            nxt = pattern[self.pos + 1] if self.pos + 1 < len(pattern) else ""
            if char in GROUP_OPS and nxt == "(":
                nodes.append(self._group(char))
            elif char == "*":
                self.pos += 1
                nodes.append(_Node("star"))
            elif char == "?":
                self.pos += 1
                nodes.append(_Node("any"))
            elif char == "[":
                nodes.append(self._bracket())
            elif char == "\\":
                if not nxt:
                    raise PatternError(f"Trailing backslash in pattern: {pattern!r}")
                self.pos += 2
                nodes.append(_Node("lit", re.escape(nxt)))
            else:
                self.pos += 1
                nodes.append(_Node("lit", re.escape(char)))
        return nodes

    def _group(self, op: str) -> _Node:
        start = self.pos
        self.pos += 2
        alts = [self._sequence(in_group=True)]
        while self.pos < len(self.pattern) and self.pattern[self.pos] == "|":
            self.pos += 1
            alts.append(self._sequence(in_group=True))
        if self.pos >= len(self.pattern) or self.pattern[self.pos] != ")":
            raise PatternError(f"Unterminated group '{op}(' at {start} in pattern: {self.pattern!r}")
        self.pos += 1
        return _Node("group", op=op, alts=alts)

    def _bracket(self) -> _Node:
        pattern = self.pattern
        i = self.pos + 1
        negate = False
        if i < len(pattern) and pattern[i] in "!^":
            negate = True
            i += 1
        members: list[str] = []
        first = True
        while i < len(pattern):
            char = pattern[i]
            if char == "]" and not first:
                break
            first = False
            if char == "[" and pattern.startswith("[:", i):
                end = pattern.find(":]", i + 2)
                name = pattern[i + 2:end] if end != -1 else ""
                if name in POSIX_CLASSES:
                    members.append(POSIX_CLASSES[name])
                    i = end + 2
                    continue
            if char == "\\" and i + 1 < len(pattern):
                members.append(re.escape(pattern[i + 1]))
                i += 2
                continue
            if char == "-" and members and i + 1 < len(pattern) and pattern[i + 1] != "]":
                members.append("-")
                i += 1
                continue
            members.append(re.escape(char) if char != "-" else "\\-")
            i += 1
        if i >= len(pattern):
            # No closing bracket: the '[' is an ordinary character.
            self.pos += 1
            return _Node("lit", re.escape("["))
        self.pos = i + 1
        body = "".join(members)
        return _Node("class", f"[{'^' if negate else ''}{body}]")


def _has_negation(nodes: list[_Node]) -> bool:
    for node in nodes:
        if node.kind == "group" and (node.op == "!" or any(_has_negation(alt) for alt in node.alts)):
            return True
    return False


def _emit_sequence(nodes: list[_Node]) -> str:
    return "".join(_emit_node(node) for node in nodes)


def _emit_node(node: _Node) -> str:
    if node.kind == "lit":
        return node.text
    if node.kind == "star":
        return ".*"
    if node.kind == "any":
        return "."
    if node.kind == "class":
        return node.text
    body = "|".join(_emit_sequence(alt) for alt in node.alts)
    suffix = {"+": "+", "*": "*", "?": "?", "@": ""}[node.op]
    return f"(?:{body}){suffix}"


@functools.lru_cache(maxsize=256)
def _parse(pattern: str) -> list[_Node]:
    return _Parser(pattern).parse()


@functools.lru_cache(maxsize=256)
def _atom(source: str) -> re.Pattern[str]:
    try:
        return re.compile(source, re.DOTALL)
    except re.error as e:
        raise PatternError(f"Invalid pattern item {source!r}: {e}") from e


def _sequence_ends(nodes: list[_Node], subject: str, starts: set[int]) -> set[int]:
    """Return every end offset reachable by matching ``nodes`` from ``starts``."""
    for node in nodes:
        if not starts:
            break
        starts = _node_ends(node, subject, starts)
    return starts


def _alternatives_ends(node: _Node, subject: str, starts: set[int]) -> set[int]:
    ends: set[int] = set()
    for alt in node.alts:
        ends |= _sequence_ends(alt, subject, starts)
    return ends


def _node_ends(node: _Node, subject: str, starts: set[int]) -> set[int]:
    if node.kind == "star":
        return set(range(min(starts), len(subject) + 1))
    if node.kind != "group":
        atom = _atom(node.text if node.kind != "any" else ".")
        return {m.end() for m in (atom.match(subject, pos) for pos in starts) if m}
    if node.op == "!":
        # Every slice starting at pos except those an alternative matches.
        ends: set[int] = set()
        for pos in starts:
            ends |= set(range(pos, len(subject) + 1)) - _alternatives_ends(node, subject, {pos})
        return ends
    once = _alternatives_ends(node, subject, starts)
    if node.op == "@":
        return once
    if node.op == "?":
        return starts | once
    reached = set(once)
    frontier = once
    while frontier:
        frontier = _alternatives_ends(node, subject, frontier) - reached
        reached |= frontier
    return reached | starts if node.op == "*" else reached


def translate(pattern: str) -> str:
    """Translate an extended glob into a regular expression source string.

    Negated groups have no regular-expression form; :func:`match` handles
    patterns containing them without going through ``translate``.

    Raises:
        PatternError: If the pattern is malformed or contains ``!(...)``.

    Example:
        >>> translate("+([0-9])")
        '(?:[0-9])+'
    """
    nodes = _parse(pattern)
    if _has_negation(nodes):
        raise PatternError(f"Pattern with '!(...)' has no regular expression form: {pattern!r}")
    return _emit_sequence(nodes)


@functools.lru_cache(maxsize=256)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile an extended glob without negated groups into a regex."""
    source = translate(pattern)
    try:
        return re.compile(source, re.DOTALL)
    except re.error as e:
        raise PatternError(f"Invalid pattern {pattern!r}: {e}") from e


def match(pattern: str, subject: str) -> bool:
    """Return True when ``subject`` matches ``pattern`` in full.

    Patterns without ``!(...)`` are matched by a compiled regex. The others
    are matched by tracking the set of subject offsets each pattern item can
    reach, so a negated group can be checked against exactly the text it
    consumes.
    """
    nodes = _parse(pattern)
    if _has_negation(nodes):
        return len(subject) in _sequence_ends(nodes, subject, {0})
    return compile_pattern(pattern).fullmatch(subject) is not None
