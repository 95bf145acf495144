"""
Scripts package for AD Lookup.

This package contains command-line scripts organized by functionality.

Subpackages:
- directory: User and group lookups against Active Directory
"""

__version__ = "0.1.0"
