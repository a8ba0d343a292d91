"""
Image helpers shared by the pyramid, the engine and the concrete aligners.

Coordinates follow the pixel-centre convention used by the warps: the
centre of pixel (row i, col j) is at (j + 0.5, i + 0.5).
"""

from typing import Tuple
import cv2
import numpy as np

from .core.structures.warp import Warp


REMAP_ROW_LENGTH = 1024


def is_single_channel(image: np.ndarray) -> bool:
    """Check whether an array holds a single-channel image"""
    image = np.asarray(image)
    return image.ndim == 2 or (image.ndim == 3 and image.shape[2] == 1)


def to_single_channel(image: np.ndarray) -> np.ndarray:
    """
    Validate a single-channel image and convert it to float32.

    Args:
        image: (H, W) or (H, W, 1) array

    Returns:
        np.ndarray: (H, W) float32 copy of the image

    Raises:
        ValueError: If the image has more than one channel
    """
    image = np.asarray(image)
    if not is_single_channel(image):
        raise ValueError(f"Expected single channel image, got shape {image.shape}")
    if image.ndim == 3:
        image = image[:, :, 0]
    return image.astype(np.float32)


def image_size(image: np.ndarray) -> Tuple[int, int]:
    """Image dimensions as (width, height)"""
    return int(image.shape[1]), int(image.shape[0])


def pixel_grid(shape: Tuple[int, ...]) -> np.ndarray:
    """
    Pixel-centre coordinates of every pixel of an image.

    Args:
        shape: Image shape (H, W, ...)

    Returns:
        np.ndarray: (H*W, 2) array of (x, y) in row-major pixel order
    """
    h, w = shape[:2]
    ys, xs = np.mgrid[0:h, 0:w]
    return np.stack([xs.ravel() + 0.5, ys.ravel() + 0.5], axis=1).astype(np.float64)


def points_in_image(points: np.ndarray, size: Tuple[int, int], border: int) -> np.ndarray:
    """
    Vectorized pixel validity test.

    Same rule as ``AlignBase.is_in_image``: a point is valid when its
    half-pixel adjusted, floored coordinate keeps at least ``border``
    pixels to every image edge.

    Args:
        points: (N, 2) array of (x, y)
        size: Image size as (width, height)
        border: Minimum distance from the image border in pixels

    Returns:
        np.ndarray: (N,) boolean mask
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    width, height = size
    with np.errstate(invalid='ignore'):
        x = np.floor(pts[:, 0] - 0.5)
        y = np.floor(pts[:, 1] - 0.5)
        return (x >= border) & (y >= border) & (x < width - border) & (y < height - border)


def sample_bilinear(image: np.ndarray, points: np.ndarray) -> np.ndarray:
    """
    Bilinearly sample an image at continuous positions.

    Args:
        image: (H, W) float32 image
        points: (N, 2) array of (x, y) in pixel-centre coordinates

    Returns:
        np.ndarray: (N,) float64 intensities
    """
    pts = np.asarray(points, dtype=np.float32).reshape(-1, 2)
    n = len(pts)
    if n == 0:
        return np.zeros(0, dtype=np.float64)

    # cv2.remap limits both map dimensions to SHRT_MAX, lay points out in rows
    cols = min(n, REMAP_ROW_LENGTH)
    rows = -(-n // cols)
    map_x = np.zeros(rows * cols, dtype=np.float32)
    map_y = np.zeros(rows * cols, dtype=np.float32)
    map_x[:n] = pts[:, 0] - 0.5
    map_y[:n] = pts[:, 1] - 0.5

    values = cv2.remap(np.asarray(image, dtype=np.float32),
                       map_x.reshape(rows, cols), map_y.reshape(rows, cols),
                       interpolation=cv2.INTER_LINEAR,
                       borderMode=cv2.BORDER_REPLICATE)
    return values.reshape(-1)[:n].astype(np.float64)


def image_gradients(image: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Sobel image derivatives, normalised to intensity units per pixel.

    Returns:
        Tuple[np.ndarray, np.ndarray]: (dI/dx, dI/dy) as float32
    """
    image = np.asarray(image, dtype=np.float32)
    gx = cv2.Sobel(image, cv2.CV_32F, 1, 0, ksize=3, scale=1.0 / 8.0,
                   borderType=cv2.BORDER_REPLICATE)
    gy = cv2.Sobel(image, cv2.CV_32F, 0, 1, ksize=3, scale=1.0 / 8.0,
                   borderType=cv2.BORDER_REPLICATE)
    return gx, gy


def warp_image(image: np.ndarray, warp: Warp, size: Tuple[int, int],
               interpolation: int = cv2.INTER_LINEAR) -> np.ndarray:
    """
    Resample an image into the template frame.

    The result satisfies dst(x) = image(W(x)) for every template pixel
    centre x, i.e. a perfectly aligned target warped this way reproduces
    the template.

    Args:
        image: Source (target) image
        warp: Template-to-target warp
        size: Output size as (width, height)
        interpolation: OpenCV interpolation flag

    Returns:
        np.ndarray: Warped image of the given size
    """
    # OpenCV places pixel centres on integer coordinates
    to_cv = np.array([[1.0, 0.0, -0.5], [0.0, 1.0, -0.5], [0.0, 0.0, 1.0]])
    from_cv = np.array([[1.0, 0.0, 0.5], [0.0, 1.0, 0.5], [0.0, 0.0, 1.0]])
    M = to_cv @ warp.matrix() @ from_cv

    return cv2.warpPerspective(np.asarray(image), M, (int(size[0]), int(size[1])),
                               flags=interpolation | cv2.WARP_INVERSE_MAP,
                               borderMode=cv2.BORDER_REPLICATE)
