"""URL slug derivation shared by villages and properties."""

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase ``text``, collapse non-alphanumeric runs to one hyphen, trim hyphens.

    ``"Hatteras Village"`` -> ``"hatteras-village"``, ``"Salvo!!"`` -> ``"salvo"``.
    """
    return _NON_ALNUM.sub("-", text.lower()).strip("-")
