"""
Region effects.

An effect is applied on demand to one rectangle of a frame, normally a
detected face. It reads the rectangle from a source buffer and writes it into
a destination buffer, which may be a different buffer. Only pixels inside the
rectangle, clipped to both buffers, are read or written.

With no region there is nothing to do and the effect is ignored. A region
entirely outside the buffers is also ignored.
"""

import logging

import cv2
import numpy as np

from .constants import C
from .frame import InvalidRegion
from .filters import Grayscale, RgbToYCbCr

logger = logging.getLogger(__name__)

class MissingRegion(RuntimeError):
    """An effect was requested but there is no region"""

EFFECT_ALIASES = {'ycbcr':'recode'}

class RegionEffects:
    EFFECTS = ('grayscale', 'blur', 'pixelate', 'recode')

    def __init__(self, block_size=C.BLOCK_SIZE, blur_radius=C.BLUR_RADIUS):
        if block_size < 1:
            raise ValueError("block_size must be at least 1")
        if blur_radius <= 0:
            raise ValueError("blur_radius must be positive")
        self.block_size  = block_size
        self.blur_radius = blur_radius
        self.handlers = {'grayscale': self.grayscale,
                         'blur':      self.blur,
                         'pixelate':  self.pixelate,
                         'recode':    self.recode}

    def apply(self, effect, region, source, dest):
        """Apply effect to region, reading source and writing dest.
        :return: True if anything was drawn.
        :raises ValueError: for an unknown effect.
        """
        effect = EFFECT_ALIASES.get(effect, effect)
        if effect not in self.handlers:
            raise ValueError(f"effect must be one of {self.EFFECTS}, not {effect!r}")
        try:
            if region is None:
                raise MissingRegion(f"no region for {effect}")
            r = region.clip(source.width, source.height).clip(dest.width, dest.height)
        except (MissingRegion, InvalidRegion) as e:
            logger.debug("%s ignored: %s", effect, e)
            return False
        logger.debug("%s on %s (clipped to %s)", effect, tuple(region[:4]), tuple(r[:4]))
        out  = dest.view(r)
        work = out.copy()
        self.handlers[effect](source.view(r), work, r, region)
        out.pixels[...] = work.pixels     # only a finished effect reaches dest
        return True

    # Each handler overwrites every pixel of out.

    def grayscale(self, src, out, r, region):
        work = src.copy()
        Grayscale(brightness=1.0).process(work)
        out.pixels[...] = work.pixels

    def recode(self, src, out, r, region):
        work = src.copy()
        RgbToYCbCr().process(work)
        out.pixels[...] = work.pixels

    def blur(self, src, out, r, region):
        img = np.ascontiguousarray(src.pixels)
        out.pixels[...] = cv2.GaussianBlur(img, (0, 0), sigmaX=self.blur_radius,
                                           borderType=cv2.BORDER_REPLICATE)

    def pixelate(self, src, out, r, region):
        """Fill each block with the mean colour of its pixels. Blocks are laid out from
        the corner of the unclipped region; blocks cut by the buffer edge average only
        the pixels that are present."""
        bs = self.block_size
        work = src.rgb
        (h, w) = work.shape[:2]
        result = np.empty_like(work)
        y0 = -((r.y - region.y) % bs)
        x0 = -((r.x - region.x) % bs)
        for by in range(y0, h, bs):
            ys = slice(max(by, 0), min(by + bs, h))
            for bx in range(x0, w, bs):
                xs = slice(max(bx, 0), min(bx + bs, w))
                mean = work[ys, xs].reshape(-1, 3).mean(axis=0)
                result[ys, xs] = np.floor(mean + 0.5)
        out.store(result, alpha=255)
