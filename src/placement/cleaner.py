"""
Address Cleaner
===============
Character-level clean-up of free-text postal addresses so they can be
URL-encoded and sent to the Google Maps APIs without breaking request
signatures or confusing the geocoder.

The pipeline is an ordered list of ``(description, step)`` pairs. Order
matters: the special-glyph mapping must run before non-ASCII stripping,
and comma clean-up must run after quotes are removed.

Hyphenated street numbers and ZIP+4 postal codes also tend to upset the
geocoder. They are left alone here because fixing them needs to know which
column holds the street number and which holds the postal code.

Usage::

    from src.placement.cleaner import clean_addresses

    clean_addresses([" 350 Fifth Ave \\u00bd, New York, NY 10118, USA "])
    # ['350 Fifth Ave 1/2, New York, NY 10118, USA']
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Callable, Iterable

from shared.python.validators import Validators

logger = logging.getLogger("placement.cleaner")

ProgressObserver = Callable[[str], None]

# Letters that have no Unicode decomposition to a plain ASCII base.
_TRANSLITERATIONS: dict[str, str] = {
    "ß": "ss",
    "æ": "ae",
    "Æ": "AE",
    "ø": "o",
    "Ø": "O",
    "ð": "d",
    "Ð": "D",
    "þ": "th",
    "Þ": "TH",
    "œ": "oe",
    "Œ": "OE",
    "ł": "l",
    "Ł": "L",
    "đ": "d",
    "Đ": "D",
}

# Typographic punctuation, mapped the way ICU's Latin-ASCII transform does.
_PUNCTUATION: dict[str, str] = {
    "‘": "'",    # left single quotation mark
    "’": "'",    # right single quotation mark
    "‚": "'",    # single low-9 quotation mark
    "‛": "'",    # single high-reversed-9 quotation mark
    "′": "'",    # prime
    "“": '"',    # left double quotation mark
    "”": '"',    # right double quotation mark
    "„": '"',    # double low-9 quotation mark
    "‟": '"',    # double high-reversed-9 quotation mark
    "″": '"',    # double prime
    "«": "<<",   # left-pointing double angle quotation mark
    "»": ">>",   # right-pointing double angle quotation mark
    "‐": "-",    # hyphen
    "‑": "-",    # non-breaking hyphen
    "‒": "-",    # figure dash
    "–": "-",    # en dash
    "—": "-",    # em dash
    "―": "-",    # horizontal bar
    "−": "-",    # minus sign
    "…": "...",  # horizontal ellipsis
}

_SPECIAL_GLYPHS: tuple[tuple[str, str], ...] = (
    ("º", "o"),    # masculine ordinal indicator
    ("ª", "a"),    # feminine ordinal indicator
    ("½", "1/2"),  # vulgar fraction one half
)

_CONTROL_CHARS = re.compile(r"[\x01-\x1f\x7f]")
_SPACE_RUNS = re.compile(r" {2,}")
_NON_ASCII = re.compile(r"[^\x00-\x7f]")
_QUOTES_AND_ASTERISKS = re.compile(r"[*\"']")
_EXTRA_COMMAS = re.compile(r"^,+|(?<=,),|,+$")
_CARE_OF = re.compile(r"c/o|c/0|c/", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Individual steps
# ---------------------------------------------------------------------------


def _replace_nbsp(text: str) -> str:
    return text.replace("\u00a0", " ")


def _replace_control_chars(text: str) -> str:
    return _CONTROL_CHARS.sub(" ", text)


def _trim_spaces(text: str) -> str:
    return _SPACE_RUNS.sub(" ", text).strip(" ")


def _transliterate_char(char: str) -> str:
    if char < "\x80":
        return char
    if char in _TRANSLITERATIONS:
        return _TRANSLITERATIONS[char]
    if char in _PUNCTUATION:
        return _PUNCTUATION[char]
    if not unicodedata.category(char).startswith("L"):
        # symbols such as ½ are handled by the glyph step
        return char
    base = "".join(
        c for c in unicodedata.normalize("NFKD", char) if not unicodedata.combining(c)
    )
    if base and base.isascii():
        return base
    return char


def _transliterate_latin(text: str) -> str:
    return "".join(_transliterate_char(c) for c in text)


def _convert_special_glyphs(text: str) -> str:
    for glyph, replacement in _SPECIAL_GLYPHS:
        text = text.replace(glyph, replacement)
    return text


def _replace_non_ascii(text: str) -> str:
    return _NON_ASCII.sub(" ", text)


def _remove_quotes(text: str) -> str:
    return _QUOTES_AND_ASTERISKS.sub("", text)


def _remove_extra_commas(text: str) -> str:
    return _EXTRA_COMMAS.sub("", text)


def _remove_care_of(text: str) -> str:
    return _CARE_OF.sub("", text)


def _tidy(text: str) -> str:
    """Repeat the deleting steps until nothing changes.

    Removing a care-of marker or a non-ASCII character can leave a space
    run, a dangling comma, or a freshly joined ``c/o``. Every step here
    only deletes characters, so the loop terminates.
    """
    while True:
        tidied = _remove_extra_commas(_trim_spaces(_remove_care_of(text)))
        if tidied == text:
            return tidied
        text = tidied


_PIPELINE: tuple[tuple[str, Callable[[str], str]], ...] = (
    ("Replacing non-breaking spaces", _replace_nbsp),
    ("Removing control characters", _replace_control_chars),
    ("Removing leading/trailing spaces, and runs of spaces", _trim_spaces),
    ("Transliterating latin1 characters and punctuation", _transliterate_latin),
    ("Converting special address markers", _convert_special_glyphs),
    ("Removing all remaining non-ASCII characters", _replace_non_ascii),
    ("Removing single/double quotes and asterisks", _remove_quotes),
    ("Removing leading, trailing, and repeated commas", _remove_extra_commas),
    ("Removing various c/o string patterns", _remove_care_of),
    ("Tidying spaces and commas left by earlier steps", _tidy),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def clean_address(text: str) -> str:
    """Clean a single address. See :func:`clean_addresses`."""
    for _, step in _PIPELINE:
        text = step(text)
    return text


def clean_addresses(
    addresses: Iterable[str],
    *,
    observer: ProgressObserver | None = None,
) -> list[str]:
    """Clean every address in *addresses* for use in a Maps API URL.

    The steps, in order:

    * replace non-breaking spaces with ``" "``
    * replace ASCII control characters (1–31 and 127) with ``" "``
    * collapse runs of spaces and trim the ends
    * transliterate accented Latin letters (``"é"`` → ``"e"``) and
      typographic quotes and dashes (``"’"`` → ``"'"``, ``"–"`` → ``"-"``)
    * convert ``º``, ``ª`` and ``½`` to ``o``, ``a`` and ``1/2``
    * replace any remaining non-ASCII character with ``" "``
    * remove single/double quotes and asterisks
    * remove leading, trailing, and repeated commas
    * remove ``c/o``, ``c/0`` and ``c/`` (case-insensitive)
    * tidy up anything the previous steps left behind

    The result is idempotent: cleaning a cleaned address changes nothing.

    Args:
        addresses: Raw UTF-8 addresses, *not* URL-encoded.
        observer: Called with each step's description before it runs.
            Defaults to DEBUG logging on ``placement.cleaner``.

    Returns:
        Cleaned addresses, same length and order as the input.

    Raises:
        InputValidationError: If *addresses* is a bare string or holds
            non-string items.
    """
    cleaned = Validators.assert_string_sequence(addresses, "addresses")
    notify = observer or logger.debug

    for description, step in _PIPELINE:
        notify(f"* {description}")
        cleaned = [step(text) for text in cleaned]

    return cleaned
