from pathlib import Path

from setuptools import setup

ROOT = Path(__file__).parent


def read_version() -> str:
    """Return ``__version__`` from ``hostprobe/__init__.py``."""
    for line in (ROOT / "hostprobe" / "__init__.py").read_text().splitlines():
        if line.startswith("__version__"):
            return line.split("=", 1)[1].strip().strip("\"'")
    raise RuntimeError("hostprobe.__version__ not found")


setup(
    name="hostprobe",
    version=read_version(),
    description="Platform-independent OS version, executable, privilege and console probes",
    python_requires=">=3.9",
    packages=["hostprobe"],
    install_requires=[
        "psutil>=5.9",
        "pydantic>=2.0",
        "rich>=13.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
)
