from backend.engine.imageslicer.slicer import ImageSlicer

__all__ = ["ImageSlicer"]
