"""
Pipeline

The pipeline owns one output FrameBuffer per filter. Each stage is a
(filter, source, dest) triple. The source is either SOURCE, the raw frame of
the cycle, or the dest of a stage added earlier. Stages reading SOURCE are
independent and run first; stages reading another stage's output run after.
"""

import sys
import collections
import logging

from .constants import C
from .config import Thresholds
from .frame import FrameBuffer
from .filters import (validate_filter, IdentityCopy, Grayscale, ChannelIsolate, ChannelThreshold,
                      RgbToHsv, HsvThreshold, RgbToYCbCr, YCbCrThreshold)

logger = logging.getLogger(__name__)

SOURCE = 'source'
WEBCAM_REPEAT  = 'webcam_repeat'
FACE_DETECTION = 'face_detection'

Stage = collections.namedtuple('Stage', ['filter','source','dest'])

class FilterFailure(RuntimeError):
    """A filter raised during a cycle. Its output buffer kept its previous contents."""
    def __init__(self, dest, filter_, error):
        super().__init__(f"{dest}: {filter_!r} failed: {error!r}")
        self.dest   = dest
        self.filter = filter_
        self.error  = error


class Pipeline:
    """Runs every filter on each new frame, in dependency order, in the caller's thread.
    Print stats on exit when used as a context manager."""
    def __init__(self, width=C.FRAME_WIDTH, height=C.FRAME_HEIGHT, out=sys.stdout, verbose=False, debug=False):
        self.width   = width
        self.height  = height
        self.out     = out
        self.stages  = []
        self.buffers = {}
        self.failures = []      # failures of the most recent cycle
        self.last_frame = None
        self.count   = 0
        self.verbose = verbose
        self.debug   = debug
        if debug:
            logger.setLevel(logging.DEBUG)
        elif verbose:
            logger.setLevel(logging.INFO)
        else:
            logger.setLevel(logging.WARNING)

    def add(self, name, f, source=SOURCE):
        """Add a filter writing to a new output buffer called name.
        source must be SOURCE or the name of a buffer that was already added."""
        validate_filter(f)
        if name == SOURCE or name in self.buffers:
            raise ValueError(f"buffer {name!r} is already defined")
        if source != SOURCE and source not in self.buffers:
            raise ValueError(f"source {source!r} must be added before {name!r}")
        self.buffers[name] = FrameBuffer(self.width, self.height)
        self.stages.append(Stage(f, source, name))
        return self.buffers[name]

    @property
    def independent_stages(self):
        return [s for s in self.stages if s.source == SOURCE]

    @property
    def dependent_stages(self):
        return [s for s in self.stages if s.source != SOURCE]

    def output(self, name):
        return self.buffers[name]

    @property
    def outputs(self):
        return dict(self.buffers)

    def run_cycle(self, frame, params=None):
        """Run every filter on frame. A filter that raises is logged and recorded in
        self.failures; its output buffer is left as it was and the filters that read
        it are skipped. Other filters still run.
        :return: the list of FilterFailure for this cycle.
        """
        if (frame.width, frame.height) != (self.width, self.height):
            raise ValueError(f"frame is {frame.width}x{frame.height}; pipeline is {self.width}x{self.height}")
        if params is None:
            params = Thresholds()
        self.count += 1
        self.last_frame = frame.copy()
        self.failures = []
        failed = set()
        logger.info("== cycle %s params=%s", self.count, params)

        for stage in self.independent_stages + self.dependent_stages:
            if stage.source in failed:
                logger.warning("skipping %s because %s failed", stage.dest, stage.source)
                failed.add(stage.dest)
                continue
            src  = self.last_frame if stage.source == SOURCE else self.buffers[stage.source]
            work = src.copy()
            logger.debug("<%s> %s -> %s", stage.filter.__class__.__name__, stage.source, stage.dest)
            try:
                stage.filter._run(work, params)
            except Exception as e:      # pylint: disable=broad-except
                logger.exception("filter %r writing %s failed", stage.filter, stage.dest)
                self.failures.append(FilterFailure(stage.dest, stage.filter, e))
                failed.add(stage.dest)
                continue
            self.buffers[stage.dest].copy_from(work)
        return self.failures

    def rerun(self, params=None):
        """Run the last frame again, e.g. after a threshold changed. Does nothing before the first frame."""
        if self.last_frame is None:
            logger.debug("rerun before any frame; ignored")
            return []
        return self.run_cycle(self.last_frame, params)

    def print_stats(self, out=sys.stdout):
        for stage in self.stages:
            name = stage.filter.__class__.__name__
            print(f"{stage.dest} ({name}): calls: {stage.filter.count}  "
                  f"mean: {stage.filter.t_mean:.2}s  stddev: {stage.filter.t_stddev:.2}",
                  file=out)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.print_stats(out=self.out)
        return False


def default_pipeline(brightness=C.DEFAULT_BRIGHTNESS, **kwargs):
    """The output surfaces of the webcam application."""
    p = Pipeline(**kwargs)
    p.add(WEBCAM_REPEAT, IdentityCopy())
    p.add('grayscale', Grayscale(brightness))
    for channel in C.CHANNELS:
        p.add(f'{channel}_channel', ChannelIsolate(channel))
    for channel in C.CHANNELS:
        p.add(f'{channel}_threshold', ChannelThreshold(channel))
    p.add('hsv', RgbToHsv())
    p.add('hsv_threshold', HsvThreshold(), source='hsv')
    p.add('ycbcr', RgbToYCbCr())
    p.add('ycbcr_threshold', YCbCrThreshold(), source='ycbcr')
    p.add(FACE_DETECTION, IdentityCopy())
    return p
