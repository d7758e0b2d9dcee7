"""
Provide functionality for maintaining the package metadata documents of an npm-compatible 
package registry.

The central class is :py:class:`~npmreg.meta.Meta`, which wraps a package's metadata 
document (sometimes called its "packument" or ``meta.json``) and merges into it the 
version descriptors uploaded by ``npm publish``.
"""
from .exceptions import *

try:
    from .version import __version__
except ImportError:
    __version__ = "(unset)"

_SYSNAME = "NPM Package Registry"
_SYSABBREV = "npmreg"

from .meta import Meta, non_relative_part, skeleton_for
