"""
Tests for the pipeline
"""

import io
import pytest
import sys

from os.path import dirname, join

import numpy as np

sys.path.append(join(dirname(dirname(dirname(__file__)))))

from camfilter.config import Thresholds
from camfilter.frame import FrameBuffer
from camfilter.filters import Filter, Grayscale, ChannelIsolate, HsvThreshold, IdentityCopy
from camfilter.pipeline import Pipeline, FilterFailure, default_pipeline, SOURCE

DEFAULT_OUTPUTS = {'webcam_repeat', 'grayscale',
                   'red_channel', 'green_channel', 'blue_channel',
                   'red_threshold', 'green_threshold', 'blue_threshold',
                   'hsv', 'hsv_threshold', 'ycbcr', 'ycbcr_threshold', 'face_detection'}

def random_frame(seed=0):
    rng = np.random.default_rng(seed)
    f = FrameBuffer()
    f.pixels[:, :, :3] = rng.integers(0, 256, (120, 160, 3), dtype=np.uint8)
    return f

class Boom(Filter):
    """Fails on every call after the first `good` calls"""
    def __init__(self, good=0):
        super().__init__()
        self.good = good
        self.calls = 0

    def process(self, buf, params=None):
        self.calls += 1
        if self.calls > self.good:
            raise RuntimeError("boom")
        buf.fill((1, 2, 3, 255))

class Recorder(Filter):
    def __init__(self, name, log):
        super().__init__()
        self.name = name
        self.log = log

    def process(self, buf, params=None):
        self.log.append(self.name)

def test_default_pipeline():
    p = default_pipeline()
    assert set(p.outputs) == DEFAULT_OUTPUTS
    frame = random_frame()
    assert p.run_cycle(frame, Thresholds()) == []
    assert p.output('webcam_repeat') == frame
    assert p.output('face_detection') == frame
    red = p.output('red_channel').pixels
    assert (red[:, :, 1:3] == 0).all()
    assert (red[:, :, 0] == frame.pixels[:, :, 0]).all()

def test_dependent_reads_upstream_output():
    p = default_pipeline()
    params = Thresholds(hsv=90)
    p.run_cycle(random_frame(), params)
    expected = p.output('hsv').copy()
    HsvThreshold().process(expected, params)
    assert p.output('hsv_threshold') == expected

def test_independent_before_dependent():
    log = []
    p = Pipeline(width=4, height=4)
    p.add('a', Recorder('a', log))
    p.add('b', Recorder('b', log), source='a')
    p.add('c', Recorder('c', log))
    p.add('d', Recorder('d', log), source='b')
    p.run_cycle(FrameBuffer(4, 4))
    assert log == ['a', 'c', 'b', 'd']

def test_add_validation():
    p = Pipeline(width=4, height=4)
    p.add('a', Grayscale())
    with pytest.raises(ValueError):
        p.add('a', Grayscale())
    with pytest.raises(ValueError):
        p.add(SOURCE, Grayscale())
    with pytest.raises(ValueError):
        p.add('b', Grayscale(), source='later')

def test_frame_size_must_match():
    p = Pipeline(width=4, height=4)
    p.add('a', Grayscale())
    with pytest.raises(ValueError):
        p.run_cycle(FrameBuffer(5, 4))

def test_failure_does_not_stop_other_filters(caplog):
    p = Pipeline()
    p.add('gray', Grayscale())
    p.add('boom', Boom())
    p.add('after_boom', IdentityCopy(), source='boom')
    p.add('red', ChannelIsolate('red'))
    frame = random_frame()

    failures = p.run_cycle(frame)
    assert len(failures) == 1
    assert isinstance(failures[0], FilterFailure)
    assert failures[0].dest == 'boom'
    assert isinstance(failures[0].error, RuntimeError)
    assert p.failures == failures
    assert any(rec.levelname == 'ERROR' and 'boom' in rec.getMessage() for rec in caplog.records)

    blank = FrameBuffer()
    assert p.output('boom') == blank
    assert p.output('after_boom') == blank
    assert p.output('gray') != blank
    assert (p.output('red').pixels[:, :, 0] == frame.pixels[:, :, 0]).all()

def test_failure_keeps_previous_output():
    p = Pipeline(width=4, height=4)
    p.add('boom', Boom(good=1))
    p.add('copy', IdentityCopy(), source='boom')
    assert p.run_cycle(FrameBuffer(4, 4)) == []
    first = p.output('boom').copy()
    assert first.get(0,0) == (1,2,3,255)

    assert len(p.run_cycle(FrameBuffer(4, 4))) == 1
    assert p.output('boom') == first
    assert p.output('copy') == first

    # a good cycle clears the failures
    p2 = Pipeline(width=4, height=4)
    p2.add('a', Grayscale())
    p2.failures = ['stale']
    assert p2.run_cycle(FrameBuffer(4, 4)) == []

def test_deterministic():
    p = default_pipeline()
    frame = random_frame(3)
    params = Thresholds(red=10, green=100, blue=200, hsv=50, ycbcr=150)
    p.run_cycle(frame, params)
    first = {name:buf.pixels.tobytes() for (name, buf) in p.outputs.items()}
    p.run_cycle(frame, params)
    second = {name:buf.pixels.tobytes() for (name, buf) in p.outputs.items()}
    assert first == second

def test_source_frame_is_not_modified():
    p = default_pipeline()
    frame = random_frame()
    before = frame.copy()
    p.run_cycle(frame)
    assert frame == before

def test_rerun():
    p = default_pipeline()
    assert p.rerun(Thresholds()) == []
    assert p.count == 0

    frame = random_frame()
    p.run_cycle(frame, Thresholds(red=0))
    assert (p.output('red_threshold').pixels[:, :, 0] == 255).sum() > 0

    p.rerun(Thresholds(red=255))
    assert (p.output('red_threshold').pixels[:, :, 0] == 0).all()
    assert p.count == 2

def test_stats_printed_on_exit():
    out = io.StringIO()
    with Pipeline(width=4, height=4, out=out) as p:
        p.add('gray', Grayscale())
        p.run_cycle(FrameBuffer(4, 4))
    assert "gray (Grayscale): calls: 1" in out.getvalue()
