"""
API package.

Versioned routers live in subpackages such as ``v1``.
"""
