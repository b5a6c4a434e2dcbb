"""
Free-hand signature capture.

A :class:`SignaturePad` collects strokes from press, move and release
events (mouse and touch are handled the same way) and rasterizes them into
a transparent PNG that :func:`order_portal.pdf_stamping.fill_template` can
embed.
"""

import io
from typing import List, Tuple

from PIL import Image, ImageDraw

Point = Tuple[float, float]

STROKE_COLOR = (0, 0, 0, 255)


class SignaturePad:
    """Drawing surface for a single signer."""

    def __init__(self, width: int = 600, height: int = 200, line_width: int = 2):
        self.width = width
        self.height = height
        self.line_width = line_width
        self._strokes: List[List[Point]] = []
        self._drawing = False

    @property
    def strokes(self) -> List[List[Point]]:
        return [list(stroke) for stroke in self._strokes]

    @property
    def is_empty(self) -> bool:
        return not self._strokes

    def press(self, x: float, y: float) -> None:
        """Start a stroke at ``(x, y)``."""
        self._drawing = True
        self._strokes.append([(x, y)])

    def move(self, x: float, y: float) -> None:
        """Extend the current stroke; ignored while the pointer is up."""
        if not self._drawing:
            return
        self._strokes[-1].append((x, y))

    def release(self) -> None:
        self._drawing = False

    def clear(self) -> None:
        self._strokes = []
        self._drawing = False

    def export(self) -> bytes:
        """Rasterize the strokes drawn so far as PNG bytes."""
        image = Image.new("RGBA", (self.width, self.height), (0, 0, 0, 0))
        draw = ImageDraw.Draw(image)
        radius = self.line_width / 2
        for stroke in self._strokes:
            if len(stroke) > 1:
                draw.line(stroke, fill=STROKE_COLOR, width=self.line_width, joint="curve")
            # Round caps at both ends; a single press leaves a dot.
            for x, y in (stroke[0], stroke[-1]):
                draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=STROKE_COLOR)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
