"""
Image sources for the tracking pipeline.

An image source turns a frame index into a decoded grayscale image. Any
object with a ``load(frame_index) -> np.ndarray`` method can be handed to the
pipeline; this module provides the numbered-file sequence used for KITTI
recordings and an in-memory source.

Key Classes:
- ImageSequenceSource: <base_path>/<prefix><zero padded index><file_type>
- InMemoryImageSource: frames already held as arrays
"""

import cv2
import numpy as np
from pathlib import Path
from typing import Dict, Sequence, Union

from .exceptions import InputError, ConfigurationError
from .logger import get_logger

logger = get_logger("image_loader")


def to_grayscale(image: np.ndarray) -> np.ndarray:
    if len(image.shape) == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


class ImageSequenceSource:
    """
    Numbered image files on disk

    Example:
        >>> source = ImageSequenceSource('../images/', 'KITTI/2011_09_26/image_00/data/000000')
        >>> gray = source.load(3)   # ../images/KITTI/2011_09_26/image_00/data/0000000003.png
    """

    def __init__(self, base_path: Union[str, Path] = '../images/',
                 prefix: str = 'KITTI/2011_09_26/image_00/data/000000',
                 file_type: str = '.png', fill_width: int = 4):
        """
        Args:
            base_path: Directory the prefix is relative to
            prefix: Path prefix before the frame number
            file_type: File extension including the dot
            fill_width: Number of digits of the zero-padded frame number
        """
        if fill_width <= 0:
            raise ConfigurationError(f"fill_width must be positive, got {fill_width}")
        self.base_path = Path(base_path)
        self.prefix = prefix
        self.file_type = file_type
        self.fill_width = fill_width

    def path_for(self, frame_index: int) -> Path:
        number = str(frame_index).zfill(self.fill_width)
        return self.base_path / f"{self.prefix}{number}{self.file_type}"

    def load(self, frame_index: int) -> np.ndarray:
        """
        Load and convert one frame to grayscale

        Raises:
            InputError: If the file is missing or cannot be decoded
        """
        path = self.path_for(frame_index)
        if not path.exists():
            raise InputError(f"Frame {frame_index}: file not found: {path}",
                             frame_index=frame_index, path=str(path))

        image = cv2.imread(str(path))
        if image is None:
            raise InputError(f"Frame {frame_index}: could not decode image: {path}",
                             frame_index=frame_index, path=str(path))

        logger.debug(f"Loaded frame {frame_index} from {path} ({image.shape[1]}x{image.shape[0]})")
        return to_grayscale(image)

    def __repr__(self):
        return f"ImageSequenceSource({self.path_for(0)!s} ...)"


class InMemoryImageSource:
    """Frames supplied as arrays, keyed by frame index"""

    def __init__(self, images: Union[Sequence[np.ndarray], Dict[int, np.ndarray]]):
        if isinstance(images, dict):
            self.images = dict(images)
        else:
            self.images = {i: image for i, image in enumerate(images)}

    def load(self, frame_index: int) -> np.ndarray:
        image = self.images.get(frame_index)
        if image is None:
            raise InputError(f"Frame {frame_index}: no such frame in memory", frame_index=frame_index)
        # every FrameRecord owns its pixels
        return to_grayscale(image).copy()

    def __len__(self):
        return len(self.images)
