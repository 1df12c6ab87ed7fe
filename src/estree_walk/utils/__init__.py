"""
Utilities: configuration constants, serialization and statistics built on the traversal engine.
"""
