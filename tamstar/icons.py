from __future__ import annotations

from PIL import Image, ImageDraw

DROP_COLOR = (235, 94, 130, 255)
MARKER_GAP = 2


def drop_marker(size: int, color: tuple[int, int, int, int] = DROP_COLOR) -> Image.Image:
    """A single drop glyph: a circle with a pointed top."""
    size = max(4, int(size))
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    radius = size * 0.34
    cx = size / 2
    cy = size - radius - 1
    draw.ellipse((cx - radius, cy - radius, cx + radius, cy + radius), fill=color)
    draw.polygon(
        [(cx, 0), (cx - radius * 0.92, cy - radius * 0.35), (cx + radius * 0.92, cy - radius * 0.35)],
        fill=color,
    )
    return image


def marker_strip(
    count: int,
    size: int = 10,
    color: tuple[int, int, int, int] = DROP_COLOR,
) -> Image.Image:
    count = max(0, int(count))
    width = max(1, count * size + max(0, count - 1) * MARKER_GAP)
    strip = Image.new("RGBA", (width, size), (0, 0, 0, 0))
    glyph = drop_marker(size, color)
    for index in range(count):
        strip.alpha_composite(glyph, (index * (size + MARKER_GAP), 0))
    return strip
