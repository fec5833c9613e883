"""Framing and collage engine.

Submodules
----------
pixels
    RGBA pixel buffers and the compositing surface.
geometry
    Size, border, letterbox and collage layout math.
transforms
    Grayscale, border, letterbox and resize transforms.
collage
    Collage normalization and assembly.
io_utils
    Image enumeration, decoding and encoding.
pipeline
    Batch runs, run configuration and recipe files.
errors
    Exception types.
"""
