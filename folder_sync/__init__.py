"""
folder_sync package
-------------------
One-directional mirror of a source directory tree onto a backup tree.
Contains modules for diffing both trees into a persisted plan, executing
that plan under a wall-clock deadline, configuration, logging, CLI and API.
"""

__version__ = "0.1.0"
