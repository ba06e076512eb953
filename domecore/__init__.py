"""Engine building blocks: streaming JSON, tar archives, RGBA bitmaps and an audio channel mixer."""

__version__ = "0.1.0"