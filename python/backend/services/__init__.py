from backend.services.imagegen import ImageGenerator
from backend.services.imagesource import read_image_bytes

__all__ = ["ImageGenerator", "read_image_bytes"]
