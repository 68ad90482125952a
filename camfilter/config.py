"""
Run-time parameters that the user adjusts while the pipeline is running.
"""

from .constants import C

class Thresholds:
    """The five live threshold values, each an int in [0,255].
    The UI owns the values. Filters are handed this object each time they run
    and read the value then, so a change takes effect on the next cycle.
    """
    __slots__ = ('red','green','blue','hsv','ycbcr')

    def __init__(self, **kwargs):
        for name in self.__slots__:
            setattr(self, name, C.DEFAULT_THRESHOLD)
        for (k,v) in kwargs.items():
            self.set(k, v)

    def set(self, name, value):
        """Set a threshold. Slider values may arrive as strings, so coerce like parseInt
        (a fraction is truncated) and clamp to [0,255]. Returns the value stored."""
        if name not in self.__slots__:
            raise KeyError(f"unknown threshold {name!r}; must be one of {self.__slots__}")
        value = min(max(int(float(value)), 0), 255)
        setattr(self, name, value)
        return value

    def __getitem__(self, name):
        if name not in self.__slots__:
            raise KeyError(name)
        return getattr(self, name)

    def __eq__(self, b):
        return isinstance(b, Thresholds) and self.dict() == b.dict()

    def __repr__(self):
        return f"<Thresholds {self.dict()}>"

    def dict(self):
        return {name:getattr(self, name) for name in self.__slots__}
