from __future__ import annotations

from pathlib import Path

from setuptools import find_packages, setup

# Read README for long description
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    # Package metadata
    name="newsroom-learning",
    version="1.0.0",
    description="Tag learning pipeline for the newsroom dashboard",
    long_description=long_description,
    long_description_content_type="text/markdown",
    # Package discovery
    packages=find_packages(exclude=["tests", "tests.*"]),
    # Dependencies
    install_requires=[
        "fastapi>=0.104.1",
        "uvicorn>=0.24.0",
        "pydantic>=2.5.0",
        "python-dotenv>=1.0.0",
        "pyyaml>=6.0",
        "cachetools>=5.3.0",
    ],
    # Optional dependencies (for development)
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "httpx>=0.25.0",
            "black>=23.0.0",
            "mypy>=1.0.0",
            "ruff>=0.1.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "httpx>=0.25.0",
        ],
    },
    # CLI commands
    entry_points={
        "console_scripts": [
            "newsroom-api=newsroom.api.app:main",
        ],
    },
    # Python version requirement (datetime.UTC)
    python_requires=">=3.11",
    # PyPI classifiers
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
        "Operating System :: OS Independent",
    ],
)
