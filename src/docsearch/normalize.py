from __future__ import annotations
import html
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import List, Tuple

from .errors import IndexBuildError

_TAG_RE = re.compile(r"<[^<>]*>")

ESCAPE = "_"
ESCAPE_LEN = 3  # "_" + two hex digits


@dataclass(frozen=True)
class NormalizedLabel:
    key: str
    display: str
    key_to_display: Tuple[int, ...]   # key char index -> display char index


def _is_key_char(ch: str) -> bool:
    """Only ASCII letters/digits survive literally; everything else is escaped."""
    return ch.isascii() and ch.isalnum()


def _escape(ch: str) -> str:
    return "".join(f"{ESCAPE}{b:02x}" for b in ch.encode("utf-8"))


def strip_markup(raw: str) -> str:
    """Drop inline tags, then decode entities (so "&lt;b&gt;" stays visible text)."""
    return html.unescape(_TAG_RE.sub("", raw))


def _encode(text: str, *, keep_trailing_space: bool) -> tuple[str, List[int]]:
    """
    Encode text into a key and return:
      - key string (lowercased, non-alphanumerics escaped as _xx per UTF-8 byte)
      - mapping list: key index -> index in ``text``
    Rules:
      * leading whitespace ignored, inner whitespace stretches collapse to one space
      * trailing whitespace dropped unless keep_trailing_space
    """
    out: List[str] = []
    mapping: List[int] = []
    pending_space: int | None = None

    for i, ch in enumerate(text):
        if ch.isspace():
            if out and pending_space is None:
                pending_space = i  # first space of this stretch
            continue

        if pending_space is not None:
            esc = _escape(" ")
            out.append(esc)
            mapping.extend([pending_space] * len(esc))
            pending_space = None

        # lower() may expand a character (e.g. "İ"); every piece maps back to i
        for c in ch.lower():
            piece = c if _is_key_char(c) else _escape(c)
            out.append(piece)
            mapping.extend([i] * len(piece))

    if keep_trailing_space and pending_space is not None:
        esc = _escape(" ")
        out.append(esc)
        mapping.extend([pending_space] * len(esc))

    return "".join(out), mapping


@lru_cache(maxsize=4096)
def normalize_label(raw: str) -> NormalizedLabel:
    """
    Turn a raw label into its lookup key and display label.

    The display label is the raw label with markup removed; the key is built
    from the display label so highlight offsets can be mapped back exactly.
    Raises IndexBuildError when nothing searchable is left.
    """
    display = strip_markup(raw)
    key, mapping = _encode(display, keep_trailing_space=False)
    if not key:
        raise IndexBuildError(f"label {raw!r} is empty after normalization")
    return NormalizedLabel(key=key, display=display, key_to_display=tuple(mapping))


def normalize_query(raw: str) -> str:
    """Normalize a typed query. A trailing space is significant: "data " != "data"."""
    return _encode(raw, keep_trailing_space=True)[0]


def is_boundary(key: str, pos: int) -> bool:
    """True if pos does not fall inside an _xx escape."""
    if pos >= 1 and key[pos - 1] == ESCAPE:
        return False
    if pos >= 2 and key[pos - 2] == ESCAPE:
        return False
    return True


def tokens(key: str) -> List[str]:
    """Split a key into single alphanumerics and three-char escapes."""
    out: List[str] = []
    i = 0
    while i < len(key):
        step = ESCAPE_LEN if key[i] == ESCAPE else 1
        out.append(key[i:i + step])
        i += step
    return out


def is_symbol_token(tok: str) -> bool:
    return tok.startswith(ESCAPE)


def find_on_boundary(key: str, needle: str) -> int:
    """Leftmost occurrence of needle in key that starts and ends on token boundaries, or -1."""
    pos = key.find(needle)
    while pos != -1:
        if is_boundary(key, pos) and is_boundary(key, pos + len(needle)):
            return pos
        pos = key.find(needle, pos + 1)
    return -1


def word_starts(norm: NormalizedLabel) -> List[int]:
    """
    /* ~~~ Key positions (> 0) where a new word begins: an alphanumeric token
       right after a separator run that holds at least one non-letter
       (so the escaped "ï" in "naïve" does not split the word). ~~~ */
    """
    key, display, mapping = norm.key, norm.display, norm.key_to_display
    starts: List[int] = []
    i = 0
    separated = False
    while i < len(key):
        if key[i] == ESCAPE:
            if not display[mapping[i]].isalpha():
                separated = True
            i += ESCAPE_LEN
            continue
        if separated and i > 0:
            starts.append(i)
        separated = False
        i += 1
    return starts
