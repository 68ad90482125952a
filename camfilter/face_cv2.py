"""
Face detection using cv2.

The pipeline does not care how a region is found; a detector is anything that
takes a FrameBuffer and returns a list of Regions. This one uses the Haar
cascades that ship with OpenCV.
"""

import os
import logging

import cv2
import numpy as np

from .constants import C
from .frame import Region

logger = logging.getLogger(__name__)

class OpenCVFaceDetector:
    """OpenCV Face Detector using Harr cascades."""
    @staticmethod
    def cv2_cascade(name):
        """Return a harr cascade from OpenCV installation."""
        thedir = cv2.data.haarcascades
        if name is None or not os.path.exists(os.path.join(thedir, name)):
            raise ValueError(f"Cascade name '{name}' must be one of " +
                             " ".join(sorted(n for n in os.listdir(thedir) if n.endswith('.xml'))))
        return os.path.join(thedir, name)

    def __init__(self, cascade='haarcascade_frontalface_default.xml', *,
                 scale_factor=1.1, min_neighbors=5, min_size=(20,20)):
        self.classifier    = cv2.CascadeClassifier(self.cv2_cascade(cascade))
        self.scale_factor  = scale_factor
        self.min_neighbors = min_neighbors
        self.min_size      = min_size

    def detect(self, buf):
        """Return the faces in buf, most confident first."""
        gray = cv2.cvtColor(np.ascontiguousarray(buf.pixels), cv2.COLOR_RGBA2GRAY)
        (faces, _, weights) = self.classifier.detectMultiScale3(
            gray, scaleFactor=self.scale_factor, minNeighbors=self.min_neighbors,
            minSize=self.min_size, flags=cv2.CASCADE_SCALE_IMAGE, outputRejectLevels=True)
        regions = [Region.from_xywh(xywh, confidence=float(w))
                   for (xywh, w) in zip(faces, np.ravel(weights))]
        regions.sort(key=lambda r: r.confidence, reverse=True)
        logger.debug("detected %s", regions)
        return regions

    __call__ = detect


def draw_regions(buf, regions, color=C.GREEN, thickness=C.BOX_THICKNESS):
    """Outline each region on buf"""
    for region in regions:
        buf.outline(region, color=color, thickness=thickness)
