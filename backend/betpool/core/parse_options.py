"""Option-String Parser — turns "a) Cats b) Dogs" into {"a": "Cats", "b": "Dogs"}.

Invariants:
    - A key is a run of lower-case letters immediately followed by ")" and
      preceded by start-of-text or whitespace
    - A description runs until the next such key (which must follow whitespace)
      or the end of the text, and is stripped
    - Text without any key token parses to {}
    - Pure: no IO, no state
"""

import re

OPTION_PATTERN = re.compile(
    r"(?<!\S)([a-z]+)\)(.*?)(?=\s[a-z]+\)|\Z)",
    re.DOTALL,
)


def parse_options(text: str) -> dict[str, str]:
    """Parse a free-text option list. Later duplicates of a key win."""
    options: dict[str, str] = {}
    for match in OPTION_PATTERN.finditer(text or ""):
        options[match.group(1).lower()] = match.group(2).strip()
    return options


def format_options(options: dict[str, str]) -> str:
    """Render options the way they are announced: "a) Cats,  b) Dogs"."""
    return ",  ".join(f"{key}) {description}" for key, description in options.items())
