"""
Setup configuration for primeguess package.
"""

from setuptools import setup, find_packages

setup(
    name="primeguess",
    version="0.1.0",
    description="Prime power guess search: N = p1^e1 * p2^e2 * ... over primes <= sqrt(N)",
    author="erpage159",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.12",
    install_requires=[
        "polars",
        "numpy",
        "sympy",
        "tqdm",
        "psutil",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "primeguess=primeguess.__main__:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Mathematics",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
)
