from __future__ import annotations

from relaybricks.parsers.registry import TypeParsers


_LOADED = False


def load_builtin_parsers(*, reload: bool = False) -> None:
    """Register the parsers of the standard message types.

    Runs when the package is imported, so the built-in parsers are in place
    before any application registration. Calling it again is cheap.
    In tests, call with reload=True to clear the registry and start over.
    """

    global _LOADED

    if _LOADED and not reload:
        return

    if reload:
        TypeParsers.clear()

    from relaybricks.parsers.well_known import WELL_KNOWN_PARSERS

    for type_, parser in WELL_KNOWN_PARSERS:
        TypeParsers.register(parser, type_.url)

    _LOADED = True
