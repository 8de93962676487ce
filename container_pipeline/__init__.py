"""Build, smoke-test and push init-system container images for many distributions."""

__version__ = "0.1.0"
