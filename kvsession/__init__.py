"""
kvsession - Server-side sessions over a key-value store

Maps an opaque, signed, client-held identifier to a bag of named values
that expire after inactivity.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- All communication through defined interfaces

Modules:
- session: Session lifecycle, key namespacing and timeout policy
- storage: Key-value store adapters (Redis, in-memory)
- carrier: Signed cookie transport for the session identifier
- middleware: Per-request session wiring for FastAPI
- config: Environment configuration
- api: HTTP request/response models
"""

__version__ = "1.0.0"
