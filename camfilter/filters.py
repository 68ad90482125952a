"""
Filter implementation and the filters used by the pipeline.

Every filter transforms a FrameBuffer in place with process(buf, params).
buf may be a whole frame or a view of a region of one.
params is the Thresholds object of the current cycle; filters that have a live
threshold read it from params each time they run and never keep it.
"""

import time
import math
from abc import ABC,abstractmethod

import numpy as np

from .constants import C
from .config import Thresholds
from .frame import FrameBuffer
from . import colorspace


def validate_filter(f):
    if not hasattr(f, 'count'):
        raise RuntimeError(str(f) + " did not call super().__init__()")

def channel_index(channel):
    try:
        return C.CHANNELS.index(channel)
    except ValueError:
        raise ValueError(f"channel must be one of {C.CHANNELS}, not {channel!r}") from None


class Filter(ABC):
    """Abstract base class for pixel transforms"""
    parameter = None            # name of the threshold this filter reads, if any

    def __init__(self):
        self.sum_t  = 0
        self.sum_t2 = 0
        self.count  = 0

    def __repr__(self):
        return f"<{self.__class__.__name__}>"

    @abstractmethod
    def process(self, buf:FrameBuffer, params:Thresholds=None):
        """Transform buf in place."""

    def threshold(self, params):
        """The current value of this filter's threshold."""
        if params is None:
            params = Thresholds()
        return params[self.parameter]

    def _run(self, buf, params):
        """Called by the pipeline. Processes and keeps timing statistics."""
        t0 = time.time()
        self.process(buf, params)
        t = time.time() - t0
        self.sum_t  += t
        self.sum_t2 += (t*t)
        self.count  += 1

    @property
    def t_mean(self):
        return self.sum_t / self.count if self.count>0 else float("nan")

    @property
    def t2_mean(self):
        return self.sum_t2 / self.count if self.count>0 else float("nan")

    @property
    def t_variance(self):
        return max(self.t2_mean - self.t_mean * self.t_mean, 0.0)

    @property
    def t_stddev(self):
        return math.sqrt(self.t_variance)


class IdentityCopy(Filter):
    """Unprocessed copy of the source. Used as the reference frame for region effects."""
    def process(self, buf, params=None):
        pass


class Grayscale(Filter):
    """Unweighted mean of R,G,B, multiplied by brightness and capped at 255. Alpha is kept."""
    def __init__(self, brightness=C.DEFAULT_BRIGHTNESS):
        super().__init__()
        self.brightness = brightness

    def __repr__(self):
        return f"<Grayscale brightness={self.brightness}>"

    def process(self, buf, params=None):
        gray = buf.rgb.sum(axis=-1) / 3
        v = np.minimum(gray * self.brightness, 255)
        buf.store(np.repeat(v[..., None], 3, axis=-1))


class ChannelIsolate(Filter):
    """Keep one of R,G,B and zero the other two"""
    def __init__(self, channel):
        super().__init__()
        self.channel = channel
        self.index   = channel_index(channel)

    def __repr__(self):
        return f"<ChannelIsolate {self.channel}>"

    def process(self, buf, params=None):
        keep = buf.pixels[:, :, self.index].copy()
        buf.pixels[:, :, :3] = 0
        buf.pixels[:, :, self.index] = keep


class ChannelThreshold(Filter):
    """255 in the channel where channel > threshold, 0 everywhere else.
    The threshold used is the one with the channel's name."""
    def __init__(self, channel):
        super().__init__()
        self.channel   = channel
        self.index     = channel_index(channel)
        self.parameter = channel

    def __repr__(self):
        return f"<ChannelThreshold {self.channel}>"

    def process(self, buf, params=None):
        above = buf.pixels[:, :, self.index] > self.threshold(params)
        buf.pixels[:, :, :3] = 0
        buf.pixels[:, :, self.index] = np.where(above, 255, 0)
        buf.pixels[:, :, 3] = 255


class RgbToHsv(Filter):
    """Replace R,G,B with the 8-bit HSV encoding (see colorspace). Applying it twice is lossy."""
    def process(self, buf, params=None):
        buf.store(colorspace.encode_hsv(buf.pixels[:, :, :3]))


class HsvThreshold(Filter):
    """Reads the output of RgbToHsv. Where V > threshold the pixel is decoded back to RGB,
    elsewhere it is black."""
    parameter = 'hsv'

    def process(self, buf, params=None):
        enc   = buf.pixels[:, :, :3]
        above = enc[:, :, 2] > self.threshold(params)
        rgb   = colorspace.hsv_to_rgb(enc)
        buf.store(np.where(above[..., None], rgb, 0), alpha=255)


class RgbToYCbCr(Filter):
    """Replace R,G,B with Y,Cb,Cr. There is no inverse."""
    def process(self, buf, params=None):
        buf.store(colorspace.rgb_to_ycbcr(buf.pixels[:, :, :3]))


class YCbCrThreshold(Filter):
    """Reads the output of RgbToYCbCr. White where Y > threshold, black elsewhere."""
    parameter = 'ycbcr'

    def process(self, buf, params=None):
        above = buf.pixels[:, :, 0] > self.threshold(params)
        buf.pixels[:, :, :3] = np.where(above, 255, 0)[..., None]
        buf.pixels[:, :, 3] = 255
