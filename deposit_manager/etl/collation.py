"""Host-independent approximation of default locale collation for codes and labels."""
import unicodedata
from typing import Tuple


def _char_rank(c: str) -> int:
    # Default collation groups: spaces/punctuation/symbols < digits < letters
    if c.isalpha():
        return 2
    if c.isdigit():
        return 1
    return 0


def locale_key(text: str) -> Tuple[Tuple[Tuple[int, str], ...], str]:
    """
    Locale-aware, host-independent sort key for clinic codes and labels.

    Primary order ignores case and accents and puts punctuation and symbols
    ahead of digits, and digits ahead of letters; ties put lowercase before
    uppercase, the way a default collator does. Within a group characters
    still compare by code point, so this approximates full collation.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    base = "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()
    return tuple((_char_rank(c), c) for c in base), text.swapcase()
