"""
Perceptual placeholder codec for uploaded images.

A placeholder is a BlurHash: a few dozen base83 characters describing the
low-frequency colour layout of an image. The feed serves the hash already
rendered as a tiny PNG data URI, so clients can paint it with no extra
round-trip while the full image loads.
"""

import base64
from io import BytesIO

import blurhash
import numpy as np
from PIL import Image

from app.core.errors import CodecError

BASE83_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz#$%*+,-.:;=?@[]^_{|}~"

ENCODE_MAX_SIDE = 32
COMPONENTS_X = 4
COMPONENTS_Y = 4
RENDER_SIZE = 16


def _check_signature(signature: str) -> None:
    if not isinstance(signature, str) or len(signature) < 6:
        raise CodecError("invalid blurhash length")
    bad = next((ch for ch in signature if ch not in BASE83_ALPHABET), None)
    if bad is not None:
        raise CodecError(f"invalid blurhash character {bad!r}")
    size_flag = BASE83_ALPHABET.index(signature[0])
    if len(signature) != 4 + 2 * (size_flag % 9 + 1) * (size_flag // 9 + 1):
        raise CodecError("invalid blurhash length")


def encode(image: Image.Image, components_x: int = COMPONENTS_X, components_y: int = COMPONENTS_Y) -> str:
    """Compute the BlurHash of ``image``; alpha is ignored."""
    if not (1 <= components_x <= 9 and 1 <= components_y <= 9):
        raise CodecError("blurhash components must be between 1 and 9")
    # blurhash closes the image it is given, so hand it a converted copy
    try:
        return blurhash.encode(image.convert("RGB"), components_x, components_y)
    except (OSError, ValueError) as e:
        raise CodecError(str(e) or "blurhash encoding failed") from e


def decode(signature: str, width: int = RENDER_SIZE, height: int = RENDER_SIZE, punch: int = 1) -> np.ndarray:
    """Reconstruct an RGBA raster shaped (height, width, 4) from a BlurHash."""
    _check_signature(signature)
    if width <= 0 or height <= 0:
        raise CodecError("render size must be positive")
    try:
        rgb = np.asarray(blurhash.decode(signature, width, height, punch), dtype=np.uint8)
    except ValueError as e:
        raise CodecError("invalid blurhash") from e

    rgba = np.full((height, width, 4), 255, dtype=np.uint8)
    rgba[..., :3] = rgb[..., :3]
    return rgba


def encode_image(image: Image.Image) -> str:
    """Downsample to fit inside 32x32 (no upscaling, no cropping) and hash it."""
    try:
        small = image.copy()
        small.thumbnail((ENCODE_MAX_SIDE, ENCODE_MAX_SIDE))
        small = small.convert("RGBA")
    except (OSError, ValueError) as e:
        raise CodecError("unreadable image") from e
    return encode(small, COMPONENTS_X, COMPONENTS_Y)


def render_data_uri(signature: str, width: int = RENDER_SIZE, height: int = RENDER_SIZE) -> str:
    """Decode a BlurHash and serialise it as a self-contained PNG data URI."""
    pixels = decode(signature, width, height)
    surface = Image.frombytes("RGBA", (width, height), pixels.tobytes())
    buf = BytesIO()
    surface.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")


def make_placeholder(image: Image.Image) -> str:
    # The stored value is the rendered placeholder, not the hash itself.
    return render_data_uri(encode_image(image))
