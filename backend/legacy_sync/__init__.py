"""Legacy store synchronization: block-allocated identifiers for legacy tables."""
