"""
Visualization functions for image alignment results.
"""

from typing import List, Optional, Tuple
import cv2
import numpy as np
import matplotlib.pyplot as plt

from .core.structures import Warp
from .utils import image_size, warp_image


def template_outline(warp: Warp, size: Tuple[int, int]) -> np.ndarray:
    """
    Template border warped into the target frame.

    Args:
        warp: Template-to-target warp
        size: Template size as (width, height)

    Returns:
        np.ndarray: (5, 2) closed polygon in target coordinates
    """
    w, h = size
    corners = np.array([[0.0, 0.0], [w, 0.0], [w, h], [0.0, h], [0.0, 0.0]])
    return warp.warp_points(corners)


def plot_alignment(template: np.ndarray,
                   target: np.ndarray,
                   warp: Warp,
                   steps: Optional[List[Warp]] = None,
                   initial_warp: Optional[Warp] = None,
                   figsize: tuple = (15, 5),
                   title: str = "Alignment",
                   show: bool = True):
    """
    Plot template, target with the aligned template outline, and residual.

    Args:
        template: Template image
        target: Target image
        warp: Refined warp
        steps: Optional intermediate warps; their template centres are drawn
            as a trajectory
        initial_warp: Optional initial warp, drawn dashed
        figsize: Figure size (width, height)
        title: Figure title
        show: Call plt.show() at the end

    Returns:
        matplotlib Figure
    """
    size = image_size(template)

    fig, axes = plt.subplots(1, 3, figsize=figsize)

    axes[0].imshow(template, cmap='gray')
    axes[0].set_title("Template")

    axes[1].imshow(target, cmap='gray')
    if initial_warp is not None:
        outline = template_outline(initial_warp, size)
        axes[1].plot(outline[:, 0] - 0.5, outline[:, 1] - 0.5, 'y--', linewidth=1, label='initial')
    outline = template_outline(warp, size)
    axes[1].plot(outline[:, 0] - 0.5, outline[:, 1] - 0.5, 'g-', linewidth=2, label='aligned')

    if steps:
        centre = np.array([size[0] / 2.0, size[1] / 2.0])
        trajectory = np.array([w.warp_points(centre) for w in steps])
        axes[1].plot(trajectory[:, 0] - 0.5, trajectory[:, 1] - 0.5, 'r.-', markersize=4,
                     label=f'steps ({len(steps)})')
    axes[1].legend(loc='upper right', fontsize=8)
    axes[1].set_title("Target")

    warped = warp_image(np.asarray(target, dtype=np.float32), warp, size)
    residual = np.abs(warped - np.asarray(template, dtype=np.float32))
    im = axes[2].imshow(residual, cmap='magma')
    axes[2].set_title(f"|T - I(W)| (mean {residual.mean():.3f})")
    fig.colorbar(im, ax=axes[2], fraction=0.046)

    for ax in axes:
        ax.axis('off')

    plt.suptitle(title, fontsize=14, fontweight='bold')
    plt.tight_layout()
    if show:
        plt.show()
    return fig


def draw_alignment(target: np.ndarray, warp: Warp, template_size: Tuple[int, int],
                   color: Tuple[int, int, int] = (0, 255, 0), thickness: int = 2) -> np.ndarray:
    """
    Draw the aligned template outline on a copy of the target with OpenCV.

    Returns:
        np.ndarray: BGR uint8 image
    """
    canvas = np.asarray(target)
    if canvas.dtype != np.uint8:
        canvas = cv2.normalize(canvas, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
    if canvas.ndim == 2:
        canvas = cv2.cvtColor(canvas, cv2.COLOR_GRAY2BGR)
    else:
        canvas = canvas.copy()

    outline = template_outline(warp, template_size)[:4] - 0.5
    pts = np.round(outline).astype(np.int32).reshape(-1, 1, 2)
    cv2.polylines(canvas, [pts], isClosed=True, color=color, thickness=thickness)
    return canvas


def save_alignment_plot(filepath: str, template: np.ndarray, target: np.ndarray,
                        warp: Warp, **kwargs):
    """Render plot_alignment to a file without showing it"""
    plt.ioff()
    fig = plot_alignment(template, target, warp, show=False, **kwargs)
    fig.savefig(filepath, dpi=150, bbox_inches='tight')
    plt.close(fig)
