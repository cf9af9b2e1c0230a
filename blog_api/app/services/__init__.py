"""
Service layer.

Services hold the business logic and talk to the document store, so
API handlers and scripts never touch the store directly.
"""
