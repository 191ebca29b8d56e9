#! /usr/bin/env python

from setuptools import find_packages, setup


def readlines(fn):
    with open(fn) as f:
        return [line.strip() for line in f if line.strip()]


setup(
    name="imgpyr",
    version="0.1.0",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    description="Complex steerable, Laplacian and Gaussian image pyramids in PyTorch.",
    license="MIT",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords=[
        "Image Pyramids",
        "Steerable Pyramid",
        "PyTorch",
    ],
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=readlines("requirements.txt"),
    extras_require={
        "dev": [
            "pytest>=5.1.2",
            "pytest-xdist",
            "nox",
            "ruff",
        ],
    },
)
