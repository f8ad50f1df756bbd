from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from PIL import Image

from imgcompress.engine import EncodePlan, SourceInfo
from imgcompress.errors import CodecError


class FakeCodec:
    """Codec stand-in: output size is fixed (or a fraction of the input)."""

    def __init__(self, out_size: Optional[int] = None, ratio: Optional[float] = None, fail: bool = False):
        self.out_size = out_size
        self.ratio = ratio
        self.fail = fail
        self.plans: List[EncodePlan] = []

    def inspect(self, data: bytes) -> SourceInfo:
        if self.fail:
            raise CodecError("cannot identify image file")
        return SourceInfo(width=100, height=50, format="jpeg", orientation=None)

    def encode(self, data: bytes, plan: EncodePlan) -> bytes:
        self.plans.append(plan)
        if self.out_size is not None:
            return b"c" * self.out_size
        return b"c" * int(len(data) * (self.ratio if self.ratio is not None else 0.5))


def write_bytes(path: Path, size: int) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\xff" * size)
    return path


def noisy_jpeg(path: Path, size=(400, 300), quality: int = 95, exif: Optional[bytes] = None) -> Path:
    """High quality noise: recompressing at a lower quality always shrinks it."""
    path.parent.mkdir(parents=True, exist_ok=True)
    im = Image.merge(
        "RGB",
        [Image.effect_noise(size, 80), Image.effect_noise(size, 60), Image.effect_noise(size, 40)],
    )
    kwargs = {"quality": quality}
    if exif is not None:
        kwargs["exif"] = exif
    im.save(path, "JPEG", **kwargs)
    return path


