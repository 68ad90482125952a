"""This module provides the following classes:

Region - An axis-aligned rectangle in frame coordinates. Usually produced by a detector.

FrameBuffer - Holds a fixed-size grid of RGBA pixels. All of the filters read and write FrameBuffers.

Regions may extend past any edge of a FrameBuffer. Everything that
takes a Region clips it against the buffer bounds before indexing;
pixels outside the buffer are dropped, never read.

"""
import collections

import cv2
import numpy as np

from .constants import C


class NotImageError(RuntimeError):
    """cv2 did not give us an image"""

class InvalidRegion(ValueError):
    """Region does not overlap the buffer"""

def store_u8(values):
    """Round half to even and clamp to [0,255].
    This is how an 8-bit clamped canvas buffer stores a number."""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


class Region(collections.namedtuple('Region', ['x','y','width','height','confidence'], defaults=[None])):
    """Rectangle in frame coordinates. Regions are never modified; clip() and intersect() return new ones."""
    __slots__ = ()

    @classmethod
    def from_xywh(cls, xywh, confidence=None):
        """cv2 detectors return (x,y,w,h) as numpy ints"""
        (x,y,w,h) = xywh
        return cls(int(x), int(y), int(w), int(h), confidence)

    @property
    def right(self):
        return self.x + self.width

    @property
    def bottom(self):
        return self.y + self.height

    @property
    def area(self):
        return max(self.width,0) * max(self.height,0)

    def intersect(self, other):
        """Return the overlap of two regions, or None if they do not overlap.
        The confidence of self is kept."""
        x0 = max(self.x, other.x)
        y0 = max(self.y, other.y)
        x1 = min(self.right, other.right)
        y1 = min(self.bottom, other.bottom)
        if x1 <= x0 or y1 <= y0:
            return None
        return Region(x0, y0, x1-x0, y1-y0, self.confidence)

    def clip(self, width, height):
        """Return the part of the region inside a width x height buffer.
        :raises InvalidRegion: if no part of the region is inside."""
        r = self.intersect(Region(0, 0, width, height))
        if r is None:
            raise InvalidRegion(f"{tuple(self[:4])} is outside {width}x{height}")
        return r


class FrameBuffer:
    """Abstraction to hold an RGBA frame.
    pixels is a (height, width, 4) uint8 array in R,G,B,A order.
    A FrameBuffer is never resized after it is created; filters mutate pixels in place.
    """
    def __init__(self, width=C.FRAME_WIDTH, height=C.FRAME_HEIGHT, *, pixels=None):
        if pixels is not None:
            if pixels.ndim != 3 or pixels.shape[2] != 4 or pixels.dtype != np.uint8:
                raise ValueError(f"pixels must be (h,w,4) uint8, not {pixels.shape} {pixels.dtype}")
            self.pixels = pixels
        else:
            self.pixels = np.zeros((height, width, 4), dtype=np.uint8)
            self.pixels[:, :, 3] = 255

    def __repr__(self):
        return f"<FrameBuffer {self.width}x{self.height}>"

    def __eq__(self, b):
        return isinstance(b, FrameBuffer) and np.array_equal(self.pixels, b.pixels)

    @property
    def width(self):
        return self.pixels.shape[1]

    @property
    def height(self):
        return self.pixels.shape[0]

    @property
    def shape(self):
        """Returns shape. note: shape[0] = height, shape[1]=width, shape[2]==4"""
        return tuple(self.pixels.shape)

    @property
    def bounds(self):
        return Region(0, 0, self.width, self.height)

    @property
    def rgb(self):
        """The R,G,B channels as float64, for arithmetic."""
        return self.pixels[:, :, :3].astype(np.float64)

    def _check(self, x, y):
        # numpy would silently wrap negative indices
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"({x},{y}) outside {self.width}x{self.height}")

    def get(self, x, y):
        self._check(x, y)
        return tuple(int(v) for v in self.pixels[y, x])

    def set(self, x, y, r, g, b, a=255):
        """Set one pixel. Each sample is clamped to [0,255]."""
        self._check(x, y)
        self.pixels[y, x] = store_u8([r, g, b, a])

    def store(self, values, alpha=None):
        """Store an array of (h,w,3) or (h,w,4) numbers, rounding and clamping each sample.
        With 3 channels alpha is untouched unless given."""
        values = store_u8(values)
        if values.shape[-1] == 3:
            self.pixels[:, :, :3] = values
        else:
            self.pixels[...] = values
        if alpha is not None:
            self.pixels[:, :, 3] = alpha

    def fill(self, color):
        self.pixels[...] = store_u8(color)

    def copy(self):
        """Returns a copy into which we can write"""
        return FrameBuffer(pixels=self.pixels.copy())

    def view(self, region):
        """Return a FrameBuffer that shares memory with the part of region inside this buffer.
        :raises InvalidRegion: if the region is entirely outside."""
        r = region.clip(self.width, self.height)
        return FrameBuffer(pixels=self.pixels[r.y:r.bottom, r.x:r.right])

    def copy_from(self, source, src_region=None, dst_origin=(0,0)):
        """Copy src_region of source so that its corner lands on dst_origin.
        The region is clipped against the source and the result against this buffer;
        pixels that fall outside either are dropped.
        :return: the number of pixels copied.
        """
        if src_region is None:
            src_region = source.bounds
        try:
            src = src_region.clip(source.width, source.height)
        except InvalidRegion:
            return 0
        # clipping moves the corner; move the destination with it
        dx = dst_origin[0] + (src.x - src_region.x)
        dy = dst_origin[1] + (src.y - src_region.y)
        dst = Region(dx, dy, src.width, src.height).intersect(self.bounds)
        if dst is None:
            return 0
        sx = src.x + (dst.x - dx)
        sy = src.y + (dst.y - dy)
        self.pixels[dst.y:dst.bottom, dst.x:dst.right] = \
            source.pixels[sy:sy+dst.height, sx:sx+dst.width]
        return dst.area

    def outline(self, region, color=C.GREEN, thickness=C.BOX_THICKNESS):
        """Draw a rectangle around region. cv2 clips the drawing to the buffer."""
        img = np.ascontiguousarray(self.pixels)
        cv2.rectangle(img, (region.x, region.y), (region.right, region.bottom),
                      tuple(int(v) for v in color), thickness=thickness)
        if img is not self.pixels:
            self.pixels[...] = img

    @classmethod
    def from_bgr(cls, img, width=C.FRAME_WIDTH, height=C.FRAME_HEIGHT):
        """Make a frame from an OpenCV BGR (or grayscale) image, resized to width x height."""
        if img is None:
            raise NotImageError("no image")
        if len(img.shape) == 2:
            img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
        if img.shape[1] != width or img.shape[0] != height:
            img = cv2.resize(img, (width, height), interpolation=cv2.INTER_AREA)
        return cls(pixels=cv2.cvtColor(img, cv2.COLOR_BGR2RGBA))

    def to_bgr(self):
        return cv2.cvtColor(np.ascontiguousarray(self.pixels), cv2.COLOR_RGBA2BGR)

    def show(self, title="", wait=None):
        """show the frame, optionally waiting for keyboard. Returns the key pressed, -1 for none."""
        cv2.namedWindow(title, 0)
        cv2.imshow(title, self.to_bgr())
        if wait is None:
            return -1
        return cv2.waitKey(wait)
