"""
Deterministic synthetic image generator.

Everything drawn is derived from the seed's MD5 digest except the
"Generated at" line, whose timestamp is passed in by the caller:

    gen = ImageGenerator(ImageSettings())
    png = gen.generate(seed=7, stamp="2026-10-19T10:55:00.000Z")

Canvases are BGR uint8 (OpenCV convention); the PNG encoder writes RGB.
"""

from __future__ import annotations

import hashlib
from typing import List, Optional, Tuple

import cv2
import numpy as np

from cache_server.config import ImageSettings


RGB = Tuple[int, int, int]

_FONT = cv2.FONT_HERSHEY_SIMPLEX
_WHITE_BGR = (255, 255, 255)
# Widest realistic timestamp line; used to size the text region.
_STAMP_PROBE = "Generated at: 0000-00-00T00:00:00.000Z"


class GenerationError(RuntimeError):
    """Allocation, drawing or encoding of an image failed."""


def seed_digest(seed: int) -> str:
    """MD5 of the seed's decimal representation, as 32 lowercase hex chars."""
    return hashlib.md5(str(seed).encode("ascii")).hexdigest()


def background_color(seed: int) -> RGB:
    h = seed_digest(seed)
    return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16))


def foreground_color(rgb: RGB) -> RGB:
    r, g, b = rgb
    return (255 - r, 255 - g, 255 - b)


def square_positions(digest: str, width: int, height: int, count: int) -> List[Tuple[int, int]]:
    """
    Top-left corners of the pattern squares.

    Square i takes x from hex digit i and y from hex digit i+1 (both wrapping
    around the digest), scaled by a tenth of the canvas dimension and reduced
    modulo that dimension.
    """
    n = len(digest)
    step_x = max(1, width // 10)
    step_y = max(1, height // 10)
    out: List[Tuple[int, int]] = []
    for i in range(count):
        x = (int(digest[i % n], 16) * step_x) % width
        y = (int(digest[(i + 1) % n], 16) * step_y) % height
        out.append((x, y))
    return out


def text_lines(seed: int, stamp: str, size_label: str) -> List[str]:
    return [
        f"Cache Test Image #{seed}",
        f"Generated at: {stamp}",
        size_label,
    ]


def encode_png(canvas: np.ndarray, compression: int = 0) -> bytes:
    """Lossless PNG encoding of a BGR canvas."""
    try:
        ok, buf = cv2.imencode(".png", canvas, [cv2.IMWRITE_PNG_COMPRESSION, int(compression)])
    except (cv2.error, MemoryError) as e:
        raise GenerationError(f"PNG encoding failed: {e}") from e
    if not ok:
        raise GenerationError("PNG encoder returned no data")
    return buf.tobytes()


class ImageGenerator:
    """
    Renders and encodes the cache-test image for a seed.

    The instance holds only immutable settings, so one generator can be
    shared across request threads.
    """

    def __init__(self, settings: Optional[ImageSettings] = None):
        self.settings = settings or ImageSettings()

    # -------- public API --------

    def render(self, seed: int, stamp: str) -> np.ndarray:
        """Return the BGR canvas for `seed` with `stamp` drawn as the timestamp line."""
        if seed < 0:
            raise ValueError("seed must be >= 0")
        s = self.settings
        digest = seed_digest(seed)
        r, g, b = background_color(seed)
        fr, fg, fb = foreground_color((r, g, b))

        try:
            canvas = np.full((s.height, s.width, 3), (b, g, r), dtype=np.uint8)

            for x, y in square_positions(digest, s.width, s.height, s.square_count):
                cv2.rectangle(
                    canvas,
                    (x, y),
                    (x + s.square_size - 1, y + s.square_size - 1),
                    (fb, fg, fr),
                    thickness=-1,
                )

            ox, oy = s.text_origin
            for k, line in enumerate(text_lines(seed, stamp, s.size_label)):
                cv2.putText(
                    canvas,
                    line,
                    (ox, oy + k * s.line_spacing),
                    _FONT,
                    s.font_scale,
                    _WHITE_BGR,
                    s.font_thickness,
                    cv2.LINE_AA,
                )
        except (cv2.error, MemoryError) as e:
            raise GenerationError(f"rendering {s.width}x{s.height} canvas failed: {e}") from e
        return canvas

    def generate(self, seed: int, stamp: str) -> bytes:
        """Render and PNG-encode; the returned bytes are the full response body."""
        canvas = self.render(seed, stamp)
        png = encode_png(canvas, self.settings.png_compression)
        del canvas
        return png

    def text_region(self) -> Tuple[int, int, int, int]:
        """
        Full-width band (x0, y0, x1, y1) that may contain text pixels,
        clipped to the canvas. Pixels outside it depend on the seed only.
        """
        s = self.settings
        (_, text_h), baseline = cv2.getTextSize(_STAMP_PROBE, _FONT, s.font_scale, s.font_thickness)
        pad = text_h // 2 + s.font_thickness + 2
        oy = s.text_origin[1]
        y0 = max(0, oy - text_h - pad)
        y1 = min(s.height, oy + 2 * s.line_spacing + baseline + pad)
        return (0, y0, s.width, y1)
