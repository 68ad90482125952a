"""
This module provides the camera frame source:

CameraFrameStream(camera) - A generator of FrameBuffers from a camera, resized to the frame size.

Details:
https://docs.opencv.org/4.x/dd/d43/tutorial_py_video_display.html
"""

import logging

import cv2

from .constants import C
from .frame import FrameBuffer

logger = logging.getLogger(__name__)

class SourceOptions:
    __slots__=('limit','frameWidth','frameHeight','counter')
    def __init__(self,**kwargs):
        self.limit = None
        self.frameWidth  = C.FRAME_WIDTH
        self.frameHeight = C.FRAME_HEIGHT
        self.counter = 0
        for (k,v) in kwargs.items():
            setattr(self,k,v)

    def atlimit(self):
        """Increment counter and return True if we are at the limit."""
        self.counter += 1
        if self.limit is None:
            return False
        return self.counter >= self.limit


def CameraFrameStream(camera=0, o=None):
    """Generator of FrameBuffers from a cv2 camera. Stops when the camera stops or at o.limit."""
    if o is None:
        o = SourceOptions()
    cap = cv2.VideoCapture(camera)
    if not cap.isOpened():
        raise RuntimeError(f"cannot open camera {camera}")
    # ask the camera for the frame size; from_bgr() resizes if it ignores us
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, o.frameWidth)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, o.frameHeight)
    try:
        while True:
            ret, img = cap.read()
            if not ret:
                logger.info("camera %s stopped", camera)
                break
            yield FrameBuffer.from_bgr(img, o.frameWidth, o.frameHeight)
            if o.atlimit():
                return
    finally:
        cap.release()
