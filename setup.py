"""Setup configuration for the SPOG Inventory Tracker."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="spog-tracker",
    version="0.1.0",
    description="Inventory and consumption tracking for sealants, paints, oils and greases",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["spog", "spog.*"], exclude=["spog.tests", "spog.tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Manufacturing",
        "Framework :: FastAPI",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0", "httpx>=0.24"],
    },
    entry_points={
        "console_scripts": [
            "spog-tracker=spog.main:main",
            "spog-admin=spog.utils.cli:main",
        ],
    },
)
