"""Exception hierarchy."""

from __future__ import annotations


class PaletteQuantError(Exception):
    """Base class for errors raised by palette_quant."""


class PaletteTooLargeError(PaletteQuantError, ValueError):
    """The palette cannot be addressed by 8-bit indices."""

    def __init__(self, size: int, limit: int = 256) -> None:
        self.size = size
        self.limit = limit
        super().__init__(
            f"Palette has {size} colours; indexed output supports at most {limit}",
        )
