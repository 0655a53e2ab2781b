"""Data access managers for the sandbox.

Each module provides async functions that encapsulate CRUD operations and
business logic.  Managers accept ``AsyncSession`` (metadata store) and
``AsyncEngine`` (workspace namespaces) as parameters and raise domain
exceptions (``LookupError``, ``ValueError``, ``SandboxError``), never HTTP
exceptions -- that translation is the router's responsibility.
"""
