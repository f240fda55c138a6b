"""
Sketch Processor Module - Drawing Snapshots for Recognition
===========================================================
Turns the raw canvas sketch into the snapshot sent to the recognition
backend: cropped to the drawing, dark lines on white, fixed size, PNG
encoded as base64.
"""

import base64
import io
from typing import Tuple

import cv2
import numpy as np
from PIL import Image


class SketchProcessor:
    """
    Prepares hand-drawn sketches for a vision model.

    The canvas draws white strokes on black; vision models read dark
    lines on a light background far better, so the default output is
    inverted.
    """

    # Fewer lit pixels than this is treated as an empty drawing
    MIN_CONTENT_PIXELS = 20

    def __init__(
        self,
        target_size: Tuple[int, int] = (512, 512),
        invert: bool = True,
        crop_padding: int = 20
    ):
        """
        Initialize the sketch processor.

        Args:
            target_size: Output image size (width, height)
            invert: Whether to invert colors (white lines on black -> black on white)
            crop_padding: Margin kept around the drawing when cropping
        """
        self.target_size = target_size
        self.invert = invert
        self.crop_padding = crop_padding

    def process(self, sketch: np.ndarray) -> np.ndarray:
        """
        Process a raw sketch image.

        Args:
            sketch: Input sketch (grayscale or BGR), white strokes on black

        Returns:
            Processed sketch as grayscale image of ``target_size``
        """
        if sketch.ndim == 3:
            processed = cv2.cvtColor(sketch, cv2.COLOR_BGR2GRAY)
        else:
            processed = sketch.copy()

        _, processed = cv2.threshold(processed, 127, 255, cv2.THRESH_BINARY)
        processed = self._crop_to_content(processed)

        if self.invert:
            processed = cv2.bitwise_not(processed)

        return self._resize_with_padding(processed)

    def has_content(self, sketch: np.ndarray) -> bool:
        """Check whether the raw sketch has anything drawn on it."""
        return int(np.count_nonzero(sketch)) >= self.MIN_CONTENT_PIXELS

    def _crop_to_content(self, image: np.ndarray) -> np.ndarray:
        coords = cv2.findNonZero(image)
        if coords is None:
            return image

        x, y, w, h = cv2.boundingRect(coords)
        x1 = max(0, x - self.crop_padding)
        y1 = max(0, y - self.crop_padding)
        x2 = min(image.shape[1], x + w + self.crop_padding)
        y2 = min(image.shape[0], y + h + self.crop_padding)
        return image[y1:y2, x1:x2]

    def _resize_with_padding(self, image: np.ndarray) -> np.ndarray:
        """
        Resize image to target size while maintaining aspect ratio.
        Adds padding to fill remaining space.
        """
        h, w = image.shape[:2]
        target_w, target_h = self.target_size

        scale = min(target_w / w, target_h / h)
        new_w = max(1, int(w * scale))
        new_h = max(1, int(h * scale))

        resized = cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)

        # White background if inverted, black otherwise
        pad_value = 255 if self.invert else 0
        padded = np.full((target_h, target_w), pad_value, dtype=np.uint8)

        x_offset = (target_w - new_w) // 2
        y_offset = (target_h - new_h) // 2
        padded[y_offset:y_offset + new_h, x_offset:x_offset + new_w] = resized

        return padded

    def to_pil(self, sketch: np.ndarray) -> Image.Image:
        """Convert processed sketch to PIL Image."""
        return Image.fromarray(sketch)

    def to_base64(self, sketch: np.ndarray, format: str = 'PNG') -> str:
        """
        Convert sketch to base64 encoded string.

        Args:
            sketch: Processed sketch image
            format: Image format ('PNG', 'JPEG')

        Returns:
            Base64 encoded string
        """
        pil_image = self.to_pil(sketch)
        buffer = io.BytesIO()
        pil_image.save(buffer, format=format)
        return base64.b64encode(buffer.getvalue()).decode('utf-8')

    def encode(self, sketch: np.ndarray) -> str:
        """Process a raw canvas sketch and return it as a base64 PNG."""
        return self.to_base64(self.process(sketch))
