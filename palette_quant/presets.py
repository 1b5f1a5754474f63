"""Built-in palettes and palette argument parsing."""

from __future__ import annotations

from palette_quant.color import RGBA64, rgba64


def _gray(levels: int) -> list[str]:
    step = 255 // (levels - 1)
    return [f"#{v:02x}{v:02x}{v:02x}" for v in range(0, 256, step)]


def _websafe() -> list[str]:
    steps = range(0, 256, 0x33)
    return [f"#{r:02x}{g:02x}{b:02x}" for r in steps for g in steps for b in steps]


# name -> hex list, in index order
PRESET_PALETTES: dict[str, list[str]] = {
    "bw": ["#000000", "#ffffff"],
    "gray4": _gray(4),
    "gray16": _gray(16),
    "cga": [
        "#000000", "#0000aa", "#00aa00", "#00aaaa",
        "#aa0000", "#aa00aa", "#aa5500", "#aaaaaa",
        "#555555", "#5555ff", "#55ff55", "#55ffff",
        "#ff5555", "#ff55ff", "#ffff55", "#ffffff",
    ],
    "gameboy": ["#0f380f", "#306230", "#8bac0f", "#9bbc0f"],
    "pico8": [
        "#000000", "#1d2b53", "#7e2553", "#008751",
        "#ab5236", "#5f574f", "#c2c3c7", "#fff1e8",
        "#ff004d", "#ffa300", "#ffec27", "#00e436",
        "#29adff", "#83769c", "#ff77a8", "#ffccaa",
    ],
    "websafe": _websafe(),
}


def get_preset(name: str) -> list[RGBA64]:
    """Colours of a built-in palette."""
    hex_list = PRESET_PALETTES.get(name)
    if hex_list is None:
        available = ", ".join(sorted(PRESET_PALETTES))
        msg = f"Unknown palette '{name}'. Available: {available}"
        raise ValueError(msg)
    return [rgba64(h) for h in hex_list]


def parse_palette_spec(text: str) -> list[RGBA64]:
    """Resolve a preset name or a comma-separated hex list like '#000000,#ffffff'."""
    text = text.strip()
    if "," in text or text.startswith("#"):
        return [rgba64(h) for h in text.split(",") if h.strip()]
    return get_preset(text)
