"""
Autocontrast enhancer — a real (if simple) image enhancement using Pillow.

Example input: the base64 text of a JPEG/PNG, optionally as a data URI
("data:image/jpeg;base64,...").

Stages, one per step() call:
    1. decode the base64 payload into a Pillow image          (+30%)
    2. stretch the histogram with ImageOps.autocontrast        (+40%)
    3. frame the image on a background colour for the style    (+30%)
    4. re-encode as base64 in the original format              → succeeded

The decoded image is kept in state.scratch between steps, so each
stage is short and the executor can cancel the job between stages.
"""

import base64
import binascii
import io

from PIL import Image, ImageOps, UnidentifiedImageError

from jobs.base import (
    AbstractEnhancer,
    EnhancementFailed,
    EnhancementState,
    EnhancementSucceeded,
    ProgressStep,
    StepOutcome,
)


class AutocontrastEnhancer(AbstractEnhancer):

    STYLE_BACKGROUNDS = {
        "white": (255, 255, 255),
        "soft grey": (210, 210, 214),
        "studio": (38, 38, 46),
    }
    DEFAULT_BACKGROUND = (245, 245, 245)
    BORDER_RATIO = 0.08  # frame width relative to the shorter side
    CUTOFF = 1           # percent of histogram clipped at each end

    def step(self, state: EnhancementState) -> StepOutcome:
        stage = state.scratch.get("stage", "decode")

        if stage == "decode":
            try:
                image, fmt = self._decode(state.input_payload)
            except (binascii.Error, ValueError, UnidentifiedImageError, OSError) as e:
                return EnhancementFailed(f"Input is not a valid base64 image: {e}")
            state.scratch.update(image=image, format=fmt, stage="contrast")
            return ProgressStep(30)

        if stage == "contrast":
            image = state.scratch["image"].convert("RGB")
            state.scratch.update(image=ImageOps.autocontrast(image, cutoff=self.CUTOFF), stage="frame")
            return ProgressStep(40)

        if stage == "frame":
            image = state.scratch["image"]
            border = max(1, int(min(image.size) * self.BORDER_RATIO))
            color = self.STYLE_BACKGROUNDS.get(state.style.lower(), self.DEFAULT_BACKGROUND)
            state.scratch.update(image=ImageOps.expand(image, border=border, fill=color), stage="encode")
            return ProgressStep(30)

        buffer = io.BytesIO()
        state.scratch["image"].save(buffer, format=state.scratch["format"])
        return EnhancementSucceeded(base64.b64encode(buffer.getvalue()).decode("ascii"))

    @staticmethod
    def _decode(payload: str) -> tuple[Image.Image, str]:
        if payload.startswith("data:") and "," in payload:
            payload = payload.split(",", 1)[1]
        raw = base64.b64decode(payload, validate=True)
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            fmt = img.format or "PNG"
            return img.copy(), fmt

    @property
    def name(self) -> str:
        return "autocontrast"
