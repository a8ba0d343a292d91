"""
Image Alignment - Command Line Example
======================================

Aligns a template image with a target image:
1. Load both images as grayscale
2. Run coarse-to-fine alignment from an initial warp
3. Report the refined warp and optionally save a visualization

Usage:
    python run_alignment.py --template tmpl.png --target scene.png --warp translation --init 120 80
    python run_alignment.py --template tmpl.png --target scene.png --preset accurate --plot result.png
"""

import argparse
from pathlib import Path
import sys

import cv2

from ImageAlignment import (
    AlignmentConfig,
    align_images,
    configure_root_logger,
    create_warp,
    disable_console_logging
)
from ImageAlignment.config import load_config, print_config


def main():
    parser = argparse.ArgumentParser(description="Coarse-to-fine image alignment")

    parser.add_argument('--template', type=str, required=True,
                        help='Template image')
    parser.add_argument('--target', type=str, required=True,
                        help='Target image')

    parser.add_argument('--warp', type=str, default='translation',
                        choices=['translation', 'euclidean', 'affine', 'homography'],
                        help='Warp model')
    parser.add_argument('--init', type=float, nargs='*', default=None,
                        help='Initial warp parameters (identity if omitted)')

    parser.add_argument('--method', type=str, default=None,
                        help='Alignment method (forward_additive, inverse_compositional)')
    parser.add_argument('--preset', type=str, default=None,
                        help='Configuration preset (fast, balanced, accurate)')
    parser.add_argument('--config', type=str, default=None,
                        help='JSON configuration file')
    parser.add_argument('--levels', type=int, default=None,
                        help='Number of pyramid levels')
    parser.add_argument('--iterations', type=int, default=None,
                        help='Maximum iterations over all levels')
    parser.add_argument('--eps', type=float, default=None,
                        help='Minimum step length')

    parser.add_argument('--plot', type=str, default=None,
                        help='Save visualization to this file')
    parser.add_argument('--verbose', action='store_true',
                        help='Enable debug logging')
    parser.add_argument('--log-file', type=str, default=None,
                        help='Log to file')
    parser.add_argument('--quiet', action='store_true',
                        help='No console logging (use with --log-file)')

    args = parser.parse_args()

    configure_root_logger(level='DEBUG' if args.verbose else 'INFO', log_file=args.log_file)
    if args.quiet:
        disable_console_logging()

    for path in (args.template, args.target):
        if not Path(path).exists():
            print(f"Error: Image not found: {path}")
            return 1

    template = cv2.imread(args.template, cv2.IMREAD_GRAYSCALE)
    target = cv2.imread(args.target, cv2.IMREAD_GRAYSCALE)
    if template is None or target is None:
        print("Error: Could not decode input images")
        return 1

    # Configuration: file, then preset, then explicit overrides
    if args.config:
        config = AlignmentConfig.from_dict(load_config(args.config))
    elif args.preset:
        config = AlignmentConfig.from_preset(args.preset)
    else:
        config = AlignmentConfig()

    if args.levels is not None:
        config.pyramid_levels = args.levels
    if args.iterations is not None:
        config.max_iterations = args.iterations
    if args.eps is not None:
        config.eps = args.eps

    if args.method:
        config.method = args.method
    print_config(config.to_dict(), title="Alignment configuration")

    try:
        warp = create_warp(args.warp, args.init or None)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    result = align_images(template, target, warp, method=args.method, config=config,
                          keep_steps=args.plot is not None)
    result.print_summary()

    if args.plot and result.warp is not None:
        from ImageAlignment.visualization import save_alignment_plot
        save_alignment_plot(args.plot, template, target, result.warp,
                            steps=result.steps, initial_warp=warp)
        print(f"Visualization saved to: {args.plot}")

    return 0 if result else 1


if __name__ == "__main__":
    sys.exit(main())
