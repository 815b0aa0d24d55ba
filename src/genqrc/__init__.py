"""
genqrc: Pack resource directories into an importable Python module.

This tool bundles resource files into a single generated module:
- Every file under the given directories is packed into one resource blob
- The generated module embeds the blob and loads it at import time
- Resources are then addressable as "qrc:///some/path"
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
