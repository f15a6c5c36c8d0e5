"""
Packaging checks for the remotelog distribution.
"""

from importlib import metadata


def test_version():
    """The installed remotelog distribution reports the version declared in pyproject.toml."""
    version = metadata.version("remotelog")
    assert version == "0.1.0"
