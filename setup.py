"""
Setup script for the 2D Feature Tracking system.
"""

from setuptools import setup, find_packages
import os


def read_readme():
    """Read README file for long description."""
    if os.path.exists('README.md'):
        with open('README.md', 'r', encoding='utf-8') as f:
            return f.read()
    return "2D keypoint tracking and detector/descriptor evaluation"


# Core requirements (always installed)
install_requires = [
    # BRIEF and FREAK live in cv2.xfeatures2d
    'opencv-contrib-python>=4.5.0',
    'numpy>=1.19.0',
    'matplotlib>=3.3.0',
    'pandas>=1.2.0',
    'psutil>=5.8.0'
]

extras_require = {
    'dev': [
        'pytest>=6.0.0',
        'pytest-cov>=2.12.0',
        'black>=21.0.0',
        'isort>=5.9.0',
        'flake8>=3.9.0'
    ],
    'test': [
        'pytest>=6.0.0',
        'pytest-cov>=2.12.0',
    ],
}

setup(
    name="feature-tracking",
    version="1.0.0",
    description="Keypoint detection, description and matching across consecutive camera frames",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=['FeatureTracking', 'FeatureTracking.*']),
    py_modules=['run_feature_tracking'],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Image Processing",
    ],
    python_requires=">=3.7",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        'console_scripts': [
            'feature-tracking=run_feature_tracking:main',
        ],
    },
    keywords=[
        "computer vision",
        "feature tracking",
        "keypoint detection",
        "descriptor matching",
        "opencv"
    ],
)
