"""
Application package initializer.

This package contains the main entrypoint for the API and its
submodules: ``core`` (settings, logging, errors, document store),
``schemas``, ``services`` and the versioned routers under
``api/<version>/``.
"""

from .main import app  # noqa: F401
