from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol

from PIL import Image, ImageOps

from .errors import CodecError
from .settings import CompressionOptions, normalize_format


logger = logging.getLogger(__name__)

EXIF_ORIENTATION = 0x0112

EXT_TO_FORMAT = {
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".png": "png",
    ".webp": "webp",
    ".avif": "avif",
    ".gif": "gif",
}

# Pillow chooses the encoder by format=..., not by file extension.
PILLOW_FORMATS = {
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "avif": "AVIF",
    "gif": "GIF",
}

# Formats whose Pillow writers accept exif= / icc_profile=.
_METADATA_FORMATS = {"jpeg", "png", "webp", "avif"}


@dataclass(frozen=True)
class SourceInfo:
    width: int
    height: int
    format: str  # normalized: "jpeg", "png", ...
    orientation: Optional[int] = None


@dataclass(frozen=True)
class EncodePlan:
    """
    Everything the codec needs to re-encode one image.

    Built by build_encode_plan() from the options, the inspected source and the
    destination path; the codec only executes it.
    """

    format: str
    auto_rotate: bool = True
    max_width: Optional[int] = None
    max_height: Optional[int] = None
    keep_metadata: bool = False
    # Drop the EXIF orientation tag (pixels are already upright, or we strip anyway).
    clear_orientation: bool = True
    params: dict = field(default_factory=dict)

    @property
    def resize(self) -> bool:
        return self.max_width is not None or self.max_height is not None


class ImageCodec(Protocol):
    def inspect(self, data: bytes) -> SourceInfo: ...

    def encode(self, data: bytes, plan: EncodePlan) -> bytes: ...


def format_from_path(path: Path) -> Optional[str]:
    return EXT_TO_FORMAT.get(Path(path).suffix.lower())


def choose_output_format(info: SourceInfo, output_path: Path, options: CompressionOptions) -> str:
    # explicit --format > destination extension > whatever the source is
    return (
        normalize_format(options.format)
        or format_from_path(output_path)
        or normalize_format(info.format)
        or "jpeg"
    )


def format_params(fmt: str, options: CompressionOptions) -> dict:
    opt = options.optimize

    if fmt == "jpeg":
        return {
            "quality": options.effective_quality("jpeg"),
            "optimize": opt,
            "progressive": True,
        }
    if fmt == "png":
        return {
            "quality": options.effective_quality("png"),
            "compress_level": 9 if opt else 6,
            "palette": opt,
            "effort": 10 if opt else 7,
        }
    if fmt == "webp":
        quality = options.effective_quality("webp")
        return {
            "quality": quality,
            "effort": 6 if opt else 4,
            "lossless": quality == 100,
        }
    if fmt == "avif":
        # No per-format override for AVIF.
        return {"quality": options.quality, "effort": 9 if opt else 5}

    return {"quality": options.quality}


def build_encode_plan(info: SourceInfo, output_path: Path, options: CompressionOptions) -> EncodePlan:
    fmt = choose_output_format(info, output_path, options)

    if options.keep_metadata:
        clear_orientation = options.rotate
    else:
        clear_orientation = True

    return EncodePlan(
        format=fmt,
        auto_rotate=options.rotate,
        max_width=options.width,
        max_height=options.height,
        keep_metadata=options.keep_metadata,
        clear_orientation=clear_orientation,
        params=format_params(fmt, options),
    )


class PillowCodec:
    """ImageCodec backed by Pillow. Works on in-memory bytes only."""

    def inspect(self, data: bytes) -> SourceInfo:
        try:
            with Image.open(io.BytesIO(data)) as im:
                orientation = im.getexif().get(EXIF_ORIENTATION)
                return SourceInfo(
                    width=im.width,
                    height=im.height,
                    format=normalize_format(im.format) or "",
                    orientation=orientation,
                )
        except Exception as exc:
            # Pillow surfaces damaged files as many exception types (struct.error, IndexError, ...).
            raise CodecError(str(exc) or exc.__class__.__name__) from exc

    def encode(self, data: bytes, plan: EncodePlan) -> bytes:
        if plan.format not in PILLOW_FORMATS:
            raise CodecError(f"Unsupported output format: {plan.format}")

        buf = io.BytesIO()
        try:
            with Image.open(io.BytesIO(data)) as src:
                src.load()
                exif = src.getexif()
                icc = src.info.get("icc_profile")

                im = src
                if plan.auto_rotate:
                    im = ImageOps.exif_transpose(im)

                im = _apply_resize(im, plan.max_width, plan.max_height)
                im = _prepare_mode(im, plan)

                save_kwargs = _build_save_kwargs(plan, exif, icc)
                im.save(buf, format=PILLOW_FORMATS[plan.format], **save_kwargs)
        except Exception as exc:
            raise CodecError(str(exc) or exc.__class__.__name__) from exc

        return buf.getvalue()


def _build_save_kwargs(plan: EncodePlan, exif: Image.Exif, icc: Optional[bytes]) -> dict:
    kwargs: dict = {}
    p = plan.params

    if plan.format in _METADATA_FORMATS:
        # The colour profile survives even when metadata is stripped.
        if icc:
            kwargs["icc_profile"] = icc

        if plan.keep_metadata:
            if plan.clear_orientation and EXIF_ORIENTATION in exif:
                del exif[EXIF_ORIENTATION]
            if len(exif):
                kwargs["exif"] = exif.tobytes()

    if plan.format == "jpeg":
        kwargs["quality"] = int(p["quality"])
        kwargs["optimize"] = bool(p["optimize"])
        kwargs["progressive"] = bool(p["progressive"])

    elif plan.format == "png":
        kwargs["compress_level"] = int(p["compress_level"])
        # Pillow has no separate effort knob; optimize is its slowest pass.
        kwargs["optimize"] = bool(p["palette"])

    elif plan.format == "webp":
        kwargs["quality"] = int(p["quality"])
        kwargs["method"] = int(p["effort"])
        kwargs["lossless"] = bool(p["lossless"])

    elif plan.format == "avif":
        kwargs["quality"] = int(p["quality"])
        # Pillow's speed runs the other way: 0 is slowest / smallest.
        kwargs["speed"] = max(0, 9 - int(p["effort"]))

    elif plan.format == "gif":
        # GIF has no quality setting; the planned quality is ignored.
        kwargs["optimize"] = True

    return kwargs


def _prepare_mode(im: Image.Image, plan: EncodePlan) -> Image.Image:
    if plan.format == "jpeg":
        if _has_alpha(im):
            return _flatten_alpha(im, (255, 255, 255))
        if im.mode not in ("RGB", "L", "CMYK"):
            return im.convert("RGB")
        return im

    if plan.format == "png" and plan.params.get("palette") and im.mode not in ("P", "1", "L"):
        return _quantize(im, int(plan.params["quality"]))

    if plan.format == "avif" and im.mode not in ("RGB", "RGBA"):
        return im.convert("RGBA" if _has_alpha(im) else "RGB")

    return im


def _quantize(im: Image.Image, quality: int) -> Image.Image:
    # Palette reduction: the PNG quality picks how many of the 256 colours we keep.
    colors = max(2, min(256, round(quality * 256 / 100)))
    if im.mode not in ("RGB", "RGBA"):
        im = im.convert("RGBA" if _has_alpha(im) else "RGB")
    return im.quantize(colors=colors, method=Image.Quantize.FASTOCTREE)


def _flatten_alpha(im: Image.Image, background_rgb: tuple[int, int, int]) -> Image.Image:
    rgba = im.convert("RGBA")
    bg = Image.new("RGBA", rgba.size, background_rgb + (255,))
    comp = Image.alpha_composite(bg, rgba)
    return comp.convert("RGB")


def _has_alpha(im: Image.Image) -> bool:
    if im.mode in ("RGBA", "LA", "PA"):
        return True
    if im.mode == "P" and "transparency" in im.info:
        return True
    return False


def _apply_resize(im: Image.Image, max_width: Optional[int], max_height: Optional[int]) -> Image.Image:
    """
    Fit within max_width x max_height, keeping the aspect ratio.
    Never upscales; either bound may be None.
    """
    if max_width is None and max_height is None:
        return im

    w, h = im.size
    max_w = max_width if max_width is not None else w
    max_h = max_height if max_height is not None else h

    scale = min(max_w / w, max_h / h)
    if scale >= 1.0:
        return im

    new_w = max(1, round(w * scale))
    new_h = max(1, round(h * scale))

    if (new_w, new_h) == (w, h):
        return im

    logger.debug("Resizing %dx%d -> %dx%d", w, h, new_w, new_h)
    return im.resize((new_w, new_h), Image.Resampling.LANCZOS)
