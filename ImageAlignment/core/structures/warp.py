"""
Parametric warp models.

A warp maps template coordinates onto target coordinates. Points are
(x, y) with the centre of pixel (row i, col j) at (j + 0.5, i + 0.5). Under
this convention halving an image maps a point p to p / 2 exactly, which is
what makes rescaling a warp between pyramid levels a plain conjugation of
its 3x3 matrix.

Supported models:
    - TranslationWarp   (tx, ty)
    - EuclideanWarp     (theta, tx, ty)
    - AffineWarp        (a11-1, a21, a12, a22-1, tx, ty)
    - HomographyWarp    (h11-1, h12, h13, h21, h22-1, h23, h31, h32)
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence, Union
import numpy as np


ParamsLike = Union[Sequence[float], np.ndarray]


class Warp(ABC):
    """
    Base class for all warp models.

    Subclasses define the parameter layout through ``matrix`` /
    ``from_matrix`` and the analytic derivative through ``jacobian``.
    Everything else (rescaling, point warping, updates) is shared.
    """

    num_params: int = 0

    def __init__(self, params: Optional[ParamsLike] = None):
        if params is None:
            self.params = np.zeros(self.num_params, dtype=np.float64)
        else:
            params = np.asarray(params, dtype=np.float64).ravel()
            if params.size != self.num_params:
                raise ValueError(
                    f"{self.__class__.__name__} expects {self.num_params} parameters, "
                    f"got {params.size}"
                )
            self.params = params.copy()

    # ========================================================================
    # MODEL DEFINITION (Required)
    # ========================================================================

    @abstractmethod
    def matrix(self) -> np.ndarray:
        """Return the 3x3 homogeneous matrix of this warp"""
        pass

    @classmethod
    @abstractmethod
    def from_matrix(cls, M: np.ndarray) -> 'Warp':
        """Build a warp of this type from a 3x3 homogeneous matrix"""
        pass

    @abstractmethod
    def jacobian(self, points: np.ndarray) -> np.ndarray:
        """
        Derivative of the warped points with respect to the parameters.

        Args:
            points: Template points (N, 2)

        Returns:
            np.ndarray: (N, 2, num_params), evaluated at the current parameters
        """
        pass

    # ========================================================================
    # SHARED BEHAVIOUR
    # ========================================================================

    @classmethod
    def identity(cls) -> 'Warp':
        return cls()

    def copy(self) -> 'Warp':
        return self.__class__(self.params)

    def scaled(self, levels: int) -> 'Warp':
        """
        Return the equivalent warp for an image scaled by 2**levels.

        Negative ``levels`` moves towards coarser pyramid levels, positive
        towards finer ones. The geometric transform is unchanged, only its
        parameterization follows the resolution change.
        """
        s = 2.0 ** levels
        S = np.diag([s, s, 1.0])
        S_inv = np.diag([1.0 / s, 1.0 / s, 1.0])
        return self.from_matrix(S @ self.matrix() @ S_inv)

    def warp_points(self, points: np.ndarray) -> np.ndarray:
        """
        Apply warp to points.

        Args:
            points: (N, 2) or (2,) array of (x, y) coordinates

        Returns:
            np.ndarray: Warped points with the same shape as the input
        """
        pts = np.asarray(points, dtype=np.float64)
        single = pts.ndim == 1
        pts = pts.reshape(-1, 2)

        M = self.matrix()
        x = pts[:, 0]
        y = pts[:, 1]
        u = M[0, 0] * x + M[0, 1] * y + M[0, 2]
        v = M[1, 0] * x + M[1, 1] * y + M[1, 2]
        w = M[2, 0] * x + M[2, 1] * y + M[2, 2]
        warped = np.stack([u / w, v / w], axis=1)

        return warped[0] if single else warped

    def update_additive(self, delta: np.ndarray) -> 'Warp':
        """p <- p + delta (in place)"""
        delta = np.asarray(delta, dtype=np.float64).ravel()
        if delta.size != self.num_params:
            raise ValueError(
                f"{self.__class__.__name__} expects a step of {self.num_params} "
                f"parameters, got {delta.size}"
            )
        self.params += delta
        return self

    def update_inverse_compositional(self, delta: np.ndarray) -> 'Warp':
        """W(x; p) <- W(x; p) o W(x; delta)^-1 (in place)"""
        step = self.__class__(delta).matrix()
        composed = self.matrix() @ np.linalg.inv(step)
        self.params = self.from_matrix(composed).params
        return self

    def set_params(self, params: ParamsLike) -> 'Warp':
        self.params = np.asarray(params, dtype=np.float64).ravel().copy()
        return self

    def __eq__(self, other) -> bool:
        if not isinstance(other, Warp) or type(other) is not type(self):
            return NotImplemented
        return np.array_equal(self.params, other.params)

    def __repr__(self) -> str:
        values = ", ".join(f"{v:.6g}" for v in self.params)
        return f"{self.__class__.__name__}([{values}])"


class TranslationWarp(Warp):
    """Pure 2D translation"""

    num_params = 2

    def matrix(self) -> np.ndarray:
        tx, ty = self.params
        return np.array([[1.0, 0.0, tx],
                         [0.0, 1.0, ty],
                         [0.0, 0.0, 1.0]])

    @classmethod
    def from_matrix(cls, M: np.ndarray) -> 'TranslationWarp':
        M = np.asarray(M, dtype=np.float64)
        M = M / M[2, 2]
        return cls([M[0, 2], M[1, 2]])

    def jacobian(self, points: np.ndarray) -> np.ndarray:
        n = len(points)
        J = np.zeros((n, 2, 2))
        J[:, 0, 0] = 1.0
        J[:, 1, 1] = 1.0
        return J


class EuclideanWarp(Warp):
    """Rotation by theta (radians) about the origin followed by translation"""

    num_params = 3

    def matrix(self) -> np.ndarray:
        theta, tx, ty = self.params
        c, s = np.cos(theta), np.sin(theta)
        return np.array([[c, -s, tx],
                         [s, c, ty],
                         [0.0, 0.0, 1.0]])

    @classmethod
    def from_matrix(cls, M: np.ndarray) -> 'EuclideanWarp':
        M = np.asarray(M, dtype=np.float64)
        M = M / M[2, 2]
        theta = np.arctan2(M[1, 0], M[0, 0])
        return cls([theta, M[0, 2], M[1, 2]])

    def jacobian(self, points: np.ndarray) -> np.ndarray:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        x, y = pts[:, 0], pts[:, 1]
        theta = self.params[0]
        c, s = np.cos(theta), np.sin(theta)

        J = np.zeros((len(pts), 2, 3))
        J[:, 0, 0] = -s * x - c * y
        J[:, 1, 0] = c * x - s * y
        J[:, 0, 1] = 1.0
        J[:, 1, 2] = 1.0
        return J


class AffineWarp(Warp):
    """
    General affine warp.

    Parameter order follows Baker & Matthews:
        [[1 + p0, p2, p4],
         [p1, 1 + p3, p5]]
    """

    num_params = 6

    def matrix(self) -> np.ndarray:
        p = self.params
        return np.array([[1.0 + p[0], p[2], p[4]],
                         [p[1], 1.0 + p[3], p[5]],
                         [0.0, 0.0, 1.0]])

    @classmethod
    def from_matrix(cls, M: np.ndarray) -> 'AffineWarp':
        M = np.asarray(M, dtype=np.float64)
        M = M / M[2, 2]
        return cls([M[0, 0] - 1.0, M[1, 0], M[0, 1], M[1, 1] - 1.0, M[0, 2], M[1, 2]])

    def jacobian(self, points: np.ndarray) -> np.ndarray:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        x, y = pts[:, 0], pts[:, 1]

        J = np.zeros((len(pts), 2, 6))
        J[:, 0, 0] = x
        J[:, 1, 1] = x
        J[:, 0, 2] = y
        J[:, 1, 3] = y
        J[:, 0, 4] = 1.0
        J[:, 1, 5] = 1.0
        return J


class HomographyWarp(Warp):
    """
    Projective warp with h33 fixed to one.

        [[1 + p0, p1, p2],
         [p3, 1 + p4, p5],
         [p6, p7, 1]]
    """

    num_params = 8

    def matrix(self) -> np.ndarray:
        p = self.params
        return np.array([[1.0 + p[0], p[1], p[2]],
                         [p[3], 1.0 + p[4], p[5]],
                         [p[6], p[7], 1.0]])

    @classmethod
    def from_matrix(cls, M: np.ndarray) -> 'HomographyWarp':
        M = np.asarray(M, dtype=np.float64)
        M = M / M[2, 2]
        return cls([M[0, 0] - 1.0, M[0, 1], M[0, 2],
                    M[1, 0], M[1, 1] - 1.0, M[1, 2],
                    M[2, 0], M[2, 1]])

    def jacobian(self, points: np.ndarray) -> np.ndarray:
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        x, y = pts[:, 0], pts[:, 1]

        M = self.matrix()
        w = M[2, 0] * x + M[2, 1] * y + 1.0
        u = (M[0, 0] * x + M[0, 1] * y + M[0, 2]) / w
        v = (M[1, 0] * x + M[1, 1] * y + M[1, 2]) / w

        J = np.zeros((len(pts), 2, 8))
        J[:, 0, 0] = x / w
        J[:, 0, 1] = y / w
        J[:, 0, 2] = 1.0 / w
        J[:, 1, 3] = x / w
        J[:, 1, 4] = y / w
        J[:, 1, 5] = 1.0 / w
        J[:, 0, 6] = -x * u / w
        J[:, 0, 7] = -y * u / w
        J[:, 1, 6] = -x * v / w
        J[:, 1, 7] = -y * v / w
        return J


WARP_TYPES = {
    'translation': TranslationWarp,
    'euclidean': EuclideanWarp,
    'affine': AffineWarp,
    'homography': HomographyWarp,
}


def create_warp(kind: str, params: Optional[ParamsLike] = None) -> Warp:
    """
    Create a warp by name.

    Args:
        kind: 'translation', 'euclidean', 'affine' or 'homography'
        params: Optional initial parameters (identity if omitted)

    Raises:
        ValueError: If the warp type is unknown
    """
    key = kind.lower()
    if key not in WARP_TYPES:
        available = ', '.join(WARP_TYPES.keys())
        raise ValueError(f"Unknown warp type: {kind}. Available: {available}")
    return WARP_TYPES[key](params)
