"""
Tests for the application triggers
"""

import sys

from os.path import dirname, join

import numpy as np

sys.path.append(join(dirname(dirname(dirname(__file__)))))

from camfilter.constants import C
from camfilter.frame import FrameBuffer,Region
from camfilter.effects import RegionEffects
from camfilter.app import ImageProcessorApp, KEY_EFFECTS

FACE = Region(40,30,30,30,0.9)

def random_frame(seed=0):
    rng = np.random.default_rng(seed)
    f = FrameBuffer()
    f.pixels[:, :, :3] = rng.integers(0, 256, (120, 160, 3), dtype=np.uint8)
    return f

def fixed_detector(buf):
    return [FACE, Region(0,0,10,10,0.1)]

def failing_detector(buf):
    raise RuntimeError("model not loaded")

class FailingBlur(RegionEffects):
    def blur(self, src, out, r, region):
        out.pixels[...] = 0
        raise RuntimeError("no blur kernel")

def test_key_map():
    assert KEY_EFFECTS == {'1':'grayscale', '2':'blur', '3':'recode', '4':'pixelate'}

def test_capture_detects_and_outlines():
    app = ImageProcessorApp(detector=fixed_detector)
    frame = random_frame()
    assert app.capture(frame) == []
    assert app.latest_region == FACE
    assert len(app.detections) == 2
    out = app.pipeline.output('face_detection')
    assert out.get(50,30) == C.GREEN
    assert app.pipeline.output('webcam_repeat') == frame

def test_effect_on_latest_region():
    app = ImageProcessorApp(detector=fixed_detector)
    frame = random_frame()
    app.capture(frame)
    assert app.handle_key('1') is True
    out = app.pipeline.output('face_detection')
    (r, g, b, _) = frame.get(50,40)
    gray = int(np.rint((r+g+b)/3))
    assert out.get(50,40) == (gray, gray, gray, 255)
    # the face effect covers its outline; everything else still matches the frame
    assert out.get(100,100) == frame.get(100,100)

def test_key_codes_from_cv2():
    app = ImageProcessorApp(detector=fixed_detector)
    app.capture(random_frame())
    assert app.handle_key(ord('4')) is True
    assert app.handle_key(-1) is False

def test_no_region_is_a_noop():
    app = ImageProcessorApp()
    frame = random_frame()
    app.capture(frame)
    assert app.latest_region is None
    before = app.pipeline.output('face_detection').copy()
    for key in KEY_EFFECTS:
        assert app.handle_key(key) is False
    assert app.pipeline.output('face_detection') == before

def test_unhandled_key():
    app = ImageProcessorApp(detector=fixed_detector)
    app.capture(random_frame())
    before = app.pipeline.output('face_detection').copy()
    assert app.handle_key('x') is False
    assert app.pipeline.output('face_detection') == before

def test_explicit_region():
    app = ImageProcessorApp()
    frame = random_frame()
    app.capture(frame)
    assert app.apply_effect('pixelate', Region(150,110,20,20)) is True
    app.set_region(Region(0,0,5,5))
    assert app.handle_key('3') is True

def test_detector_failure():
    app = ImageProcessorApp(detector=failing_detector)
    assert app.capture(random_frame()) == []
    assert app.latest_region is None
    assert app.detections == []

def test_threshold_change_reruns():
    app = ImageProcessorApp()
    assert app.set_threshold('red', 10) == []          # nothing captured yet
    app.capture(random_frame())
    assert (app.pipeline.output('red_threshold').pixels[:, :, 0] == 255).any()
    app.set_threshold('red', '255')
    assert app.thresholds.red == 255
    assert (app.pipeline.output('red_threshold').pixels[:, :, 0] == 0).all()
    assert app.pipeline.count == 2

def test_effect_failure(caplog):
    app = ImageProcessorApp(detector=fixed_detector, effects=FailingBlur())
    app.capture(random_frame())
    before = app.pipeline.output('face_detection').copy()
    assert app.handle_key('2') is False
    assert 'blur' in caplog.text
    assert any(rec.levelname == 'ERROR' for rec in caplog.records)
    assert app.pipeline.output('face_detection') == before
    # other effects still work
    assert app.handle_key('1') is True
