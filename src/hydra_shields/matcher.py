"""
Shell-style glob matching for jobset identities (``project:jobset``) and job
names.

Supports ``*``, ``?``, ``[seq]``, ``[!seq]`` like :mod:`fnmatch`, and
additionally ``{a,b}`` alternation. Matching is always case-sensitive and
``*`` crosses ``:`` and ``/``.
"""

from dataclasses import dataclass
from fnmatch import translate
import re
from typing import Pattern, Tuple

from hydra_shields.errors import PatternError


@dataclass(frozen=True)
class Matcher:
    pattern: str
    regex: Pattern[str]

    def is_match(self, text: str) -> bool:
        return self.regex.match(text) is not None

    def __str__(self) -> str:
        return self.pattern


def _class_end(pattern: str, start: int) -> int:
    i = start + 1
    if i < len(pattern) and pattern[i] == "!":
        i += 1
    # a ']' directly after the opening bracket is a literal member
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    while i < len(pattern) and pattern[i] != "]":
        i += 1
    if i >= len(pattern):
        raise PatternError(
            f"unclosed character class at position {start} in glob {pattern!r}"
        )
    return i



MAX_NESTING = 32

# fnmatch wraps its output as (?s:...)\Z, or \z on newer interpreters
_TRANSLATED = re.compile(r"\(\?s:(.*)\)\\[Zz]", re.DOTALL)


def _segment(text: str) -> str:
    if not text:
        return ""
    return _TRANSLATED.fullmatch(translate(text)).group(1)


def _translate(pattern: str, start: int, depth: int) -> Tuple[str, int]:
    """
    Translate the glob from ``start`` up to the end, or up to the ``,`` or
    ``}`` that ends the current alternative when nested, into a regex
    fragment. Brace alternations become inline ``(?:...|...)`` groups.
    """
    parts = []
    segment_start = i = start
    while i < len(pattern):
        c = pattern[i]
        if c == "[":
            i = _class_end(pattern, i) + 1
            continue
        if c == "{":
            if depth >= MAX_NESTING:
                raise PatternError(
                    f"alternations nested deeper than {MAX_NESTING} in glob {pattern!r}"
                )
            parts.append(_segment(pattern[segment_start:i]))
            opened_at = i
            i += 1
            options = []
            while True:
                option, i = _translate(pattern, i, depth + 1)
                options.append(option)
                if i >= len(pattern):
                    raise PatternError(
                        f"unclosed alternation at position {opened_at} in glob {pattern!r}"
                    )
                i += 1
                if pattern[i - 1] == "}":
                    break
            parts.append("(?:" + "|".join(options) + ")")
            segment_start = i
            continue
        if c == "}" or (c == "," and depth > 0):
            if depth == 0:
                raise PatternError(
                    f"unopened alternation at position {i} in glob {pattern!r}"
                )
            break
        i += 1

    parts.append(_segment(pattern[segment_start:i]))
    return "".join(parts), i


def compile_glob(pattern: str) -> Matcher:
    regex, _ = _translate(pattern, 0, 0)
    return Matcher(pattern=pattern, regex=re.compile(rf"(?s:{regex})\Z"))


def matches(matcher: Matcher, text: str) -> bool:
    return matcher.is_match(text)
