"""Design document.

Abstractions related to image content:

FrameBuffer - A fixed-size grid of RGBA pixels, 160x120 unless asked
        otherwise. It is the unit all filters read and write. A
        FrameBuffer is created once for each output surface and
        mutated in place; it is never resized.

Region - An axis-aligned rectangle in frame coordinates, normally
        from a face detector. Regions may hang off any edge of a
        frame, so everything that takes one clips it first.

Abstractions related to image processing:

Filter - an in-place transform of a FrameBuffer (or of a view of part
        of one). "Filter" is a class that is subclassed; each output
        surface has its own instance. Thresholds are not kept by the
        filters; they are passed in each time a filter runs.

Pipeline - Holds the filters and one output buffer per filter, and
        runs them all on each new frame. Filters that read another
        filter's output run after it. A filter that fails leaves its
        output as it was and the others still run.

RegionEffects - grayscale, blur, pixelate and YCbCr recode of just a
        region, read from one buffer and drawn into another. Applied
        on demand, not on every frame.

ImageProcessorApp - Connects the triggers (capture, threshold change,
        effect keys) to the pipeline and the effects.

"""
