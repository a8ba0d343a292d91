"""
Setup script for the ImageAlignment coarse-to-fine alignment library.
"""

from setuptools import setup, find_packages
import os


def read_requirements(filename):
    """Read requirements from file, filtering out comments and empty lines."""
    requirements = []
    if os.path.exists(filename):
        with open(filename, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#'):
                    requirements.append(line)
    return requirements


def read_readme():
    """Read README file for long description."""
    if os.path.exists('README.md'):
        with open('README.md', 'r', encoding='utf-8') as f:
            return f.read()
    return "Coarse-to-fine parametric image alignment"


# Core requirements (always installed)
install_requires = read_requirements('requirements.txt') or [
    'numpy>=1.19.0',
    'opencv-python>=4.5.0',
    'scipy>=1.6.0',
    'matplotlib>=3.3.0',
]

extras_require = {
    'dev': [
        'pytest>=6.0.0',
        'pytest-cov>=2.12.0',
        'black>=21.0.0',
        'isort>=5.9.0',
        'flake8>=3.9.0'
    ],
}
extras_require['test'] = extras_require['dev'][:2]

setup(
    name="image-alignment",
    version="1.0.0",
    description="Coarse-to-fine parametric image alignment (Lucas-Kanade family)",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=['ImageAlignment', 'ImageAlignment.*']),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Image Processing",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    py_modules=['run_alignment'],
    entry_points={
        'console_scripts': [
            'image-align=run_alignment:main',
        ],
    },
    keywords=[
        "computer vision",
        "image alignment",
        "image registration",
        "lucas-kanade",
        "inverse compositional",
        "image pyramid",
        "opencv"
    ],
)
