"""
The interactive application.

Each capture runs the pipeline on a new frame, runs the detector (if there is
one) on the webcam_repeat surface, outlines what it found on the
face_detection surface and keeps the first detection as the latest region.
Keys 1-4 then apply a region effect to the latest region, reading
webcam_repeat and drawing on face_detection.

The latest region is whatever the most recent capture found. A capture
between a detection and a key press replaces it, so the effect lands on the
newest detection.
"""

import argparse
import logging

import cv2

from .constants import C
from .config import Thresholds
from .effects import RegionEffects
from .face_cv2 import OpenCVFaceDetector, draw_regions
from .pipeline import default_pipeline, WEBCAM_REPEAT, FACE_DETECTION
from .source import CameraFrameStream, SourceOptions

logger = logging.getLogger(__name__)

KEY_EFFECTS = {'1':'grayscale',
               '2':'blur',
               '3':'recode',
               '4':'pixelate'}

THRESHOLD_WINDOW = 'thresholds'

class ImageProcessorApp:
    """Connects the triggers (capture, threshold change, effect keys) to the pipeline."""
    def __init__(self, pipeline=None, detector=None, thresholds=None, effects=None,
                 effect_source=WEBCAM_REPEAT, effect_dest=FACE_DETECTION):
        """
        :param detector: callable taking a FrameBuffer and returning a list of Regions, or None.
        :param effect_source: output buffer that region effects read.
        :param effect_dest: output buffer that region effects and detection outlines are drawn on.
        """
        self.pipeline   = pipeline if pipeline is not None else default_pipeline()
        self.detector   = detector
        self.thresholds = thresholds if thresholds is not None else Thresholds()
        self.effects    = effects if effects is not None else RegionEffects()
        self.effect_source = effect_source
        self.effect_dest   = effect_dest
        self.detections    = []
        self.latest_region = None

    def capture(self, frame):
        """Capture trigger. Returns the filter failures of the cycle."""
        failures = self.pipeline.run_cycle(frame, self.thresholds)
        self.detect()
        return failures

    def set_threshold(self, name, value):
        """Parameter change trigger: store the new value and run the last frame again."""
        self.thresholds.set(name, value)
        failures = self.pipeline.rerun(self.thresholds)
        if self.pipeline.last_frame is not None:
            self.detect()
        return failures

    def set_region(self, region):
        """For detectors that run outside the app."""
        self.latest_region = region

    def detect(self):
        if self.detector is None:
            return
        try:
            self.detections = list(self.detector(self.pipeline.output(self.effect_source)))
        except Exception:       # pylint: disable=broad-except
            logger.exception("detector %r failed", self.detector)
            self.detections = []
        self.latest_region = self.detections[0] if self.detections else None
        draw_regions(self.pipeline.output(self.effect_dest), self.detections)

    def apply_effect(self, effect, region=None):
        """Effect trigger. Uses region, or the latest region if none is given.
        Returns True if the effect was drawn."""
        if region is None:
            region = self.latest_region
        try:
            return self.effects.apply(effect, region,
                                      self.pipeline.output(self.effect_source),
                                      self.pipeline.output(self.effect_dest))
        except Exception:       # pylint: disable=broad-except
            logger.exception("effect %s on %r failed", effect, region)
            return False

    def handle_key(self, key):
        """Map a key ('1'..'4', or a cv2.waitKey() code) to an effect."""
        if isinstance(key, int):
            key = chr(key & 0xFF) if key >= 0 else None
        effect = KEY_EFFECTS.get(key)
        if effect is None:
            logger.warning("Unhandled key press: %r", key)
            return False
        return self.apply_effect(effect)

    def show(self):
        for (name, buf) in self.pipeline.outputs.items():
            buf.show(title=name)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the webcam through the filter pipeline. "
                                     "space captures, 1-4 apply a face effect, q quits.",
                                     formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser.add_argument("--camera", type=int, default=0, help="cv2 camera number")
    parser.add_argument("--faces", action='store_true', help="detect faces with OpenCV")
    parser.add_argument("--live", action='store_true', help="capture every frame, not just on space")
    parser.add_argument("--brightness", type=float, default=C.DEFAULT_BRIGHTNESS, help="grayscale brightness")
    parser.add_argument("--verbose", action='store_true')
    parser.add_argument("--debug", action='store_true')
    args = parser.parse_args(argv)

    logging.basicConfig(format='%(asctime)s %(name)s %(levelname)s %(message)s',
                        level=logging.DEBUG if args.debug else logging.INFO if args.verbose else logging.WARNING)

    pipeline = default_pipeline(brightness=args.brightness, verbose=args.verbose, debug=args.debug)
    app = ImageProcessorApp(pipeline=pipeline,
                            detector=OpenCVFaceDetector() if args.faces else None)

    cv2.namedWindow(THRESHOLD_WINDOW, 0)
    for name in Thresholds.__slots__:
        cv2.createTrackbar(name, THRESHOLD_WINDOW, app.thresholds[name], 255,
                           lambda value, name=name: app.set_threshold(name, value))

    with pipeline:
        for frame in CameraFrameStream(args.camera, SourceOptions()):
            if args.live:
                app.capture(frame)
            frame.show(title='webcam')
            app.show()
            key = cv2.waitKey(1)
            if key < 0:
                continue
            ch = chr(key & 0xFF)
            if ch == 'q':
                break
            if ch == ' ':
                app.capture(frame)
            else:
                app.handle_key(ch)
    cv2.destroyAllWindows()


if __name__=="__main__":
    main()
