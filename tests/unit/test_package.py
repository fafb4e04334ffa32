"""Test package initialization and imports."""

import sys


def test_package_version():
    """Verify package version is accessible."""
    from agentchat import __version__

    assert __version__ == "1.0.0"


def test_python_version():
    """Verify Python version meets minimum requirement (>=3.11)."""
    assert sys.version_info >= (3, 11), "Python 3.11+ is required"


def test_subpackages_importable():
    """Verify all subpackages are importable."""
    import agentchat.api
    import agentchat.api.handlers
    import agentchat.core
    import agentchat.middleware
    import agentchat.models
    import agentchat.utils

    assert agentchat.api is not None
    assert agentchat.api.handlers is not None
    assert agentchat.core is not None
    assert agentchat.middleware is not None
    assert agentchat.models is not None
    assert agentchat.utils is not None
