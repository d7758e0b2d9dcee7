"""
Exceptions raised by the npmreg package
"""

__all__ = [
    "NPMRegException", "MetaUpdateError", "MalformedUploadError", "UnrecognizedTarballPathError",
    "PatchApplicationError", "ConfigurationException"
]

class NPMRegException(Exception):
    """
    a general base class for exceptions raised by the npmreg package.  
    """
    def __init__(self, message, cause=None):
        """
        :param str message:   a description of what went wrong
        :param Exception cause:  the underlying exception that triggered this one (optional)
        """
        if not message and cause:
            message = str(cause)
        super(NPMRegException, self).__init__(message)
        self.cause = cause

class MetaUpdateError(NPMRegException):
    """
    an exception indicating that a package's metadata document could not be updated with the 
    data from an upload.  The metadata document being updated is left unchanged.
    """
    pass

class MalformedUploadError(MetaUpdateError):
    """
    an exception indicating that an uploaded publish document is missing required properties
    or has properties of the wrong type.  
    """
    pass

class UnrecognizedTarballPathError(MalformedUploadError):
    """
    an exception indicating that a tarball URL does not contain the expected scoped-package 
    path (``@scope/name/-/@scope/file``) and so could not be rebased under a new path prefix.

    The offending URL is available via the ``url`` property.
    """
    def __init__(self, url, message=None, cause=None):
        if not message:
            message = "Tarball URL does not contain a recognizable scoped-package path: " + str(url)
        super(UnrecognizedTarballPathError, self).__init__(message, cause)
        self.url = url

class PatchApplicationError(MetaUpdateError):
    """
    an exception indicating that the patch computed from an upload could not be applied to the 
    current metadata document, typically because the document does not have the expected 
    structure (e.g. it has no ``versions`` object).  The underlying ``jsonpatch`` or 
    ``jsonpointer`` exception is available via the ``cause`` property.
    """
    pass

class ConfigurationException(NPMRegException):
    """
    an exception indicating that configuration data is missing or invalid
    """
    pass
