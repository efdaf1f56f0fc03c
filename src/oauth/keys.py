from src.oauth.enums import KeyCategory


def check_key_prefix(prefix: str) -> str:
    if not prefix or ":" in prefix:
        raise ValueError("Key prefix must be non-empty and must not contain ':'")
    return prefix


class KeyNamer:
    """Builds ``<prefix>:<category>:<id>`` keys for one logical store."""

    def __init__(self, prefix: str) -> None:
        self.prefix = check_key_prefix(prefix)

    def make_key(self, category: KeyCategory, identifier: str) -> str:
        # Category values never contain ':', so the first two separators
        # delimit prefix and category even when the identifier contains ':'.
        return f"{self.prefix}:{KeyCategory(category).value}:{identifier}"
