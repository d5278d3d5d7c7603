from __future__ import annotations


def normalize_nick(value, *, max_chars: int = 0) -> str | None:
    """Return *value* if it is acceptable as a nickname, else None.

    The name is not stripped: the line was already trimmed, and whatever
    follows the command prefix is the requested nickname.
    """
    if not isinstance(value, str):
        return None

    if max_chars > 0 and len(value) > max_chars:
        return None

    # Embedded newlines or NUL break line framing and log formatting.
    if any(ch in value for ch in ("\n", "\r", "\x00")):
        return None
    if any(not ch.isprintable() and not ch.isspace() for ch in value):
        return None

    return value


def split_private(args: str) -> tuple[str, str] | None:
    """Split a /MSG argument into (recipient, body) at the first space.

    Only a single space separates the two; the body is kept as sent.
    """
    parts = args.split(" ", 1)
    if len(parts) != 2:
        return None
    return parts[0], parts[1]
