from __future__ import annotations

from dataclasses import dataclass
import logging
import math

import numpy as np
from PIL import Image
import torch

from .color import Color


LOGGER = logging.getLogger(__name__)

# Substituted for pixels that arrive non-finite or outside 0..255.
INVALID_PIXEL = torch.tensor([255, 0, 255, 255], dtype=torch.uint8)


@dataclass
class PixelBuffer:
    """Row-major RGBA8888 pixel storage.

    Coordinates are floored before the bounds check. Reads outside the buffer
    return 0 and writes outside it are dropped; neither raises.
    """

    width: int
    height: int

    def __post_init__(self) -> None:
        self.width = math.floor(self.width)
        self.height = math.floor(self.height)
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be > 0")
        self.data = bytearray(self.width * self.height * 4)

    def _index(self, x: float, y: float) -> int:
        xi = math.floor(x)
        yi = math.floor(y)
        if xi < 0 or yi < 0 or xi >= self.width or yi >= self.height:
            return -1
        return (yi * self.width + xi) * 4

    def set_pixel(self, x: float, y: float, rgba: int) -> None:
        i = self._index(x, y)
        if i < 0:
            return
        buf = self.data
        buf[i] = (rgba >> 24) & 0xFF
        buf[i + 1] = (rgba >> 16) & 0xFF
        buf[i + 2] = (rgba >> 8) & 0xFF
        buf[i + 3] = rgba & 0xFF

    def set_pixel_components(self, x: float, y: float, r: int, g: int, b: int, a: int) -> None:
        i = self._index(x, y)
        if i < 0:
            return
        buf = self.data
        buf[i] = r & 0xFF
        buf[i + 1] = g & 0xFF
        buf[i + 2] = b & 0xFF
        buf[i + 3] = a & 0xFF

    def get_pixel(self, x: float, y: float) -> int:
        i = self._index(x, y)
        if i < 0:
            return 0
        buf = self.data
        return (buf[i] << 24) | (buf[i + 1] << 16) | (buf[i + 2] << 8) | buf[i + 3]

    def get_pixel_components(self, x: float, y: float) -> Color:
        i = self._index(x, y)
        if i < 0:
            return (0, 0, 0, 0)
        buf = self.data
        return (buf[i], buf[i + 1], buf[i + 2], buf[i + 3])

    def clear(self, rgba: int = 0x00000000) -> None:
        self.fill_rect(0, 0, self.width, self.height, rgba)

    def fill_rect(self, x: int, y: int, w: int, h: int, rgba: int) -> None:
        """Overwrite a device-space rectangle without blending."""
        if w <= 0 or h <= 0:
            return
        x0 = max(0, x)
        y0 = max(0, y)
        x1 = min(self.width, x + w)
        y1 = min(self.height, y + h)
        if x1 <= x0 or y1 <= y0:
            return
        pixel = rgba.to_bytes(4, "big")
        run = pixel * (x1 - x0)
        buf = self.data
        for yy in range(y0, y1):
            row = (yy * self.width + x0) * 4
            buf[row : row + len(run)] = run

    def copy(self) -> "PixelBuffer":
        clone = PixelBuffer(self.width, self.height)
        clone.data[:] = self.data
        return clone

    def to_bytes(self) -> bytes:
        return bytes(self.data)

    def to_numpy(self) -> np.ndarray:
        """Writable (height, width, 4) uint8 view sharing this buffer's memory."""
        return np.frombuffer(self.data, dtype=np.uint8).reshape(self.height, self.width, 4)

    def to_image(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), bytes(self.data))

    @classmethod
    def from_image(cls, image: Image.Image) -> "PixelBuffer":
        rgba = image.convert("RGBA")
        width, height = rgba.size
        buffer = cls(width, height)
        buffer.data[:] = rgba.tobytes()
        return buffer

    def to_tensor(self) -> torch.Tensor:
        """(height, width, 4) uint8 frame tensor sharing this buffer's memory."""
        return torch.from_numpy(self.to_numpy())

    @classmethod
    def from_tensor(cls, tensor: torch.Tensor) -> "PixelBuffer":
        """Copy an (h, w, 4) numeric tensor; bad pixels become magenta."""
        if not torch.is_tensor(tensor):
            raise ValueError("frame must be a torch.Tensor")
        if tensor.ndim != 3 or tensor.shape[2] != 4:
            raise ValueError(f"frame has invalid shape: {tuple(tensor.shape)} expected (h, w, 4)")
        if tensor.is_complex():
            raise ValueError(f"frame must be a numeric tensor, got {tensor.dtype}")
        raw = tensor.detach().to("cpu", torch.float32)
        invalid = ~torch.isfinite(raw) | (raw < 0) | (raw > 255)
        pixel_mask = torch.any(invalid, dim=-1)
        invalid_pixels = int(pixel_mask.sum().item())
        clamped = torch.clamp(torch.nan_to_num(raw), 0, 255).round().to(torch.uint8)
        if invalid_pixels > 0:
            LOGGER.warning("replaced %d invalid pixels in incoming frame", invalid_pixels)
            clamped[pixel_mask] = INVALID_PIXEL
        return cls.from_numpy(clamped.contiguous().numpy())

    @classmethod
    def from_numpy(cls, array: np.ndarray) -> "PixelBuffer":
        if array.ndim != 3 or array.shape[2] != 4:
            raise ValueError(f"expected an (h, w, 4) array, got shape {array.shape}")
        height, width, _ = array.shape
        buffer = cls(width, height)
        buffer.data[:] = np.ascontiguousarray(array, dtype=np.uint8).tobytes()
        return buffer
