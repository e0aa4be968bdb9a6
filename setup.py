"""Setup script for mtr_collection package."""

from setuptools import setup, find_packages

setup(
    name="mtr_collection",
    version="1.0.0",
    description="Sequential runner for collections of test-suite invocations",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    python_requires=">=3.9",
    install_requires=[
        "pyyaml>=5.4",
        "click>=8.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mtr-collection=mtr_collection.cli.main:cli",
        ],
    },
)
