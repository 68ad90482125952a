"""
Colour space conversions on numpy arrays of 8-bit samples.

All functions take arrays whose last axis is (R,G,B) with values 0..255 and
work on any leading shape, so they can be applied to a whole frame, to a
region of a frame, or to a single pixel.

HSV is kept in 8 bits per component so that it can be stored in the R,G,B
channels of a FrameBuffer: hue*255/360 in R, saturation*255 in G, value*255
in B. This is lossy. Anything that reads it back must use hsv_to_rgb().
"""

import numpy as np

from .constants import C

def rgb_to_hsv(rgb):
    """Return (h, s, v): hue in degrees [0,360), saturation and value in [0,1]."""
    rgb = np.asarray(rgb, dtype=np.float64) / 255
    r = rgb[..., 0]
    g = rgb[..., 1]
    b = rgb[..., 2]
    mx   = rgb.max(axis=-1)
    mn   = rgb.min(axis=-1)
    diff = mx - mn
    d = np.where(diff == 0, 1, diff)   # avoid dividing by zero; those hues are zeroed below
    h = np.where(mx == r, 60 * np.mod((g - b) / d, 6),
                 np.where(mx == g, 60 * ((b - r) / d + 2),
                          60 * ((r - g) / d + 4)))
    h = np.where(diff == 0, 0.0, h)
    s = np.where(mx == 0, 0.0, diff / np.where(mx == 0, 1, mx))
    return (h, s, mx)

def encode_hsv(rgb):
    """RGB to the 8-bit HSV encoding. Returns floats; storing them into a frame rounds."""
    (h, s, v) = rgb_to_hsv(rgb)
    return np.stack([h * 255 / 360, s * 255, v * 255], axis=-1)

def hsv_to_rgb(encoded):
    """Decode the 8-bit HSV encoding back to RGB, rounding each channel half up."""
    enc = np.asarray(encoded, dtype=np.float64)
    h = np.mod(enc[..., 0] * 360 / 255, 360)   # an encoded 255 is 360 degrees, the same hue as 0
    s = enc[..., 1] / 255
    v = enc[..., 2] / 255

    c = v * s
    x = c * (1 - np.abs(np.mod(h / 60, 2) - 1))
    m = v - c
    z = np.zeros_like(c)

    sector = np.minimum(np.floor(h / 60).astype(np.int64), 5)
    r = np.choose(sector, [c, x, z, z, x, c])
    g = np.choose(sector, [x, c, c, x, z, z])
    b = np.choose(sector, [z, z, x, c, c, x])
    return np.floor((np.stack([r, g, b], axis=-1) + m[..., None]) * 255 + 0.5)

def rgb_to_ycbcr(rgb):
    """Full-range BT.601 YCbCr. Returns floats stacked as (Y, Cb, Cr)."""
    rgb = np.asarray(rgb, dtype=np.float64)
    r = rgb[..., 0]
    g = rgb[..., 1]
    b = rgb[..., 2]
    y  = C.Y_R * r + C.Y_G * g + C.Y_B * b
    cb = C.CHROMA_OFFSET + C.CB_R * r + C.CB_G * g + C.CB_B * b
    cr = C.CHROMA_OFFSET + C.CR_R * r + C.CR_G * g + C.CR_B * b
    return np.stack([y, cb, cr], axis=-1)
