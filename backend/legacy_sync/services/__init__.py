"""Services module.

This module provides the service layer architecture:
- exceptions: Custom service exceptions
- sequences: Block-allocated identifiers (counter store, allocator, registry)
"""
