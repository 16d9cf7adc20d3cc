"""Normalization of free-text labels (instrument types, asset names)."""

import re
import unicodedata


def normalize_label(text: str | None) -> str:
    """Lower-case, strip accents, turn underscores into spaces, squeeze blanks.

    "Renda_Fixa Pré/Pós" -> "renda fixa pre/pos"
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"\s+", " ", stripped.replace("_", " ").lower()).strip()


def contains_word(text: str, phrase: str) -> bool:
    """Whether phrase occurs in text as whole words."""
    return re.search(rf"(?<!\w){re.escape(phrase)}(?!\w)", text) is not None
