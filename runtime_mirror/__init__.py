"""Runtime Mirror — keep runtime files in sync while you develop.

Watches a source directory tree for files matching glob patterns and
mirrors every create, change, rename and delete into a target tree.
"""

__version__ = "1.0.0"
__app_name__ = "Runtime Mirror"
