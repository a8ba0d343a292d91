"""
Multi-resolution image pyramid.

Level 0 holds the original image, every following level is Gaussian
smoothed and downsampled by two. Samples are taken between source pixels
so that a point p (pixel centres at half-integers) lands at exactly p / 2
on the next level. Level arrays are stored read-only, so a pyramid can be
shared between several aligners without any of them being able to modify
it.
"""

from typing import Iterator, List, Sequence, Tuple
import cv2
import numpy as np

from ImageAlignment.logger import get_logger

logger = get_logger("pyramid")


# Smallest side length allowed at the coarsest level
MIN_LEVEL_SIZE = 8


def downsample(image: np.ndarray) -> np.ndarray:
    """
    Smooth and halve an image.

    Level pixel (i, j) is sampled at source position (2i + 0.5, 2j + 0.5),
    the midpoint of the 2x2 block it covers. Odd sizes round up, like
    cv2.pyrDown.

    Args:
        image: Single-channel float32 image

    Returns:
        np.ndarray: Image of size ((w + 1) // 2, (h + 1) // 2)
    """
    h, w = image.shape[:2]
    blurred = cv2.GaussianBlur(image, (5, 5), 0)

    # Source index x maps to level index x / 2 - 0.25
    M = np.array([[0.5, 0.0, -0.25],
                  [0.0, 0.5, -0.25]])
    return cv2.warpAffine(blurred, M, ((w + 1) // 2, (h + 1) // 2),
                          flags=cv2.INTER_LINEAR, borderMode=cv2.BORDER_REPLICATE)


class ImagePyramid:
    """
    Ordered sequence of progressively halved single-channel images.

    Build with ``ImagePyramid.create(image, levels)`` or wrap existing
    level arrays with ``ImagePyramid(levels)``.
    """

    def __init__(self, levels: Sequence[np.ndarray] = ()):
        self._levels: List[np.ndarray] = []
        for img in levels:
            img = np.asarray(img)
            if img.flags.writeable:
                img = img.copy()
                img.flags.writeable = False
            self._levels.append(img)

    @classmethod
    def create(cls, image: np.ndarray, num_levels: int) -> 'ImagePyramid':
        """
        Build a pyramid from a single-channel image.

        Args:
            image: (H, W) or (H, W, 1) image
            num_levels: Number of levels to build (at least 1)

        Returns:
            ImagePyramid: New pyramid owning its level arrays
        """
        # Local import avoids a cycle with the utils module
        from ImageAlignment.utils import to_single_channel

        current = to_single_channel(image)
        levels = [current]
        for _ in range(1, max(1, int(num_levels))):
            current = downsample(current)
            levels.append(current)

        logger.debug(f"Built pyramid with {len(levels)} levels from image "
                     f"{image.shape[1]}x{image.shape[0]}")
        return cls(levels)

    @staticmethod
    def max_levels_for_image_size(size: Tuple[int, int]) -> int:
        """
        Largest number of levels an image of the given size supports.

        The coarsest level must keep a side length of at least
        MIN_LEVEL_SIZE pixels. Never returns less than 1.

        Args:
            size: Image size as (width, height)
        """
        side = min(int(size[0]), int(size[1]))
        levels = 1
        while (side + 1) // 2 >= MIN_LEVEL_SIZE:
            side = (side + 1) // 2
            levels += 1
        return levels

    @property
    def num_levels(self) -> int:
        return len(self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __getitem__(self, level: int) -> np.ndarray:
        return self._levels[level]

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._levels)

    def slice(self, start: int, count: int) -> 'ImagePyramid':
        """
        Sub-pyramid sharing the level arrays of this one.

        Args:
            start: First level to include
            count: Number of levels

        Raises:
            ValueError: If the range is outside the pyramid
        """
        if start < 0 or count < 1 or start + count > self.num_levels:
            raise ValueError(
                f"Invalid pyramid slice [{start}, {start + count}) "
                f"for pyramid with {self.num_levels} levels"
            )
        return ImagePyramid(self._levels[start:start + count])

    def __repr__(self) -> str:
        shapes = ", ".join(f"{img.shape[1]}x{img.shape[0]}" for img in self._levels)
        return f"ImagePyramid([{shapes}])"
