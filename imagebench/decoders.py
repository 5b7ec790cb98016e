"""
Decoder adapters.

Every adapter takes an in-memory byte buffer and returns RGBA pixels, so the
runner can time file I/O and decompression separately and outputs from
different libraries stay comparable byte for byte.
"""

from __future__ import annotations

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass

import PIL
from PIL import Image

RGBA_COMPONENTS = 4


@dataclass(frozen=True)
class DecodeOutput:
    """Raw decoder output.

    Pixel data is row-major, top-to-bottom, 4 bytes per pixel in R, G, B, A
    order. On failure the buffer is empty and all geometry is zero.
    """

    pixel_data: bytes
    width: int
    height: int
    components: int
    success: bool
    error: str | None = None

    @classmethod
    def failure(cls, error: str) -> DecodeOutput:
        return cls(pixel_data=b"", width=0, height=0, components=0, success=False, error=error)

    @property
    def pixel_data_size(self) -> int:
        return self.width * self.height * self.components


@dataclass(frozen=True)
class ImageFormat:
    """A benchmarkable image format and where its files live."""

    name: str
    subdirectory: str
    extensions: tuple[str, ...]


PNG = ImageFormat(name="PNG", subdirectory="png", extensions=(".png",))
JPG = ImageFormat(name="JPG", subdirectory="jpg", extensions=(".jpg", ".jpeg"))

FORMATS: dict[str, ImageFormat] = {
    "png": PNG,
    "jpg": JPG,
}


class Decoder(ABC):
    """Uniform contract around one image decoding library."""

    name: str = ""
    version: str = ""

    def __init__(self, image_format: ImageFormat):
        self.image_format = image_format

    @property
    def format_name(self) -> str:
        return self.image_format.name

    def initialize(self) -> None:
        """One-time library setup. Timed by the runner as library init."""

    @abstractmethod
    def decode(self, data: bytes) -> DecodeOutput:
        """Decode a complete encoded image held in memory.

        Must not raise for malformed input; failures are reported through
        ``DecodeOutput.success`` and ``DecodeOutput.error``.
        """


class PillowDecoder(Decoder):
    """Decoder backed by Pillow, restricted to a single format plugin."""

    name = "Pillow"
    version = PIL.__version__

    # Pillow plugin identifiers
    _PLUGINS = {"PNG": "PNG", "JPG": "JPEG"}

    def __init__(self, image_format: ImageFormat):
        super().__init__(image_format)
        try:
            self._plugin = self._PLUGINS[image_format.name]
        except KeyError:
            raise ValueError(f"Pillow decoder does not support format: {image_format.name}") from None

    def initialize(self) -> None:
        # Registers every plugin; Image.open would otherwise do it lazily
        # inside the first timed decode.
        Image.init()
        # Large valid images are benchmark input, not decompression bombs
        Image.MAX_IMAGE_PIXELS = None

    def decode(self, data: bytes) -> DecodeOutput:
        try:
            with Image.open(io.BytesIO(data), formats=(self._plugin,)) as image:
                rgba = image.convert("RGBA")
            pixels = rgba.tobytes()
            width, height = rgba.size
        except Exception as e:
            return DecodeOutput.failure(str(e) or type(e).__name__)

        return DecodeOutput(
            pixel_data=pixels,
            width=width,
            height=height,
            components=RGBA_COMPONENTS,
            success=True,
        )


def get_decoder(format_key: str) -> Decoder:
    """Build the decoder adapter for a format key ("png" or "jpg")."""
    try:
        image_format = FORMATS[format_key.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown image format: {format_key} (expected one of {', '.join(FORMATS)})"
        ) from None
    return PillowDecoder(image_format)
