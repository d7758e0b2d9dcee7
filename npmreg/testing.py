"""
Helpers for unit tests that need scratch files and directories.

A test module typically creates a shared temporary directory at module set-up and removes it
at tear-down:
.. code-block:: python

   def setUpModule():
       ensure_tmpdir()

   def tearDownModule():
       rmtmpdir()

while an individual test case can use a :py:class:`Tempfiles` instance to track files that it
creates and remove them after each test.
"""
import os, shutil, tempfile

__all__ = [ 'ensure_tmpdir', 'tmpdir', 'rmtmpdir', 'Tempfiles' ]

_tmpdir = None

def ensure_tmpdir():
    """
    create the shared temporary directory if it does not exist yet and return its path
    """
    global _tmpdir
    if not _tmpdir or not os.path.isdir(_tmpdir):
        _tmpdir = tempfile.mkdtemp(prefix="_npmreg-test-")
    return _tmpdir

def tmpdir():
    """
    return the path to the shared temporary directory or None if it has not been created
    """
    return _tmpdir

def rmtmpdir():
    """
    remove the shared temporary directory and everything in it
    """
    global _tmpdir
    if _tmpdir and os.path.exists(_tmpdir):
        shutil.rmtree(_tmpdir)
    _tmpdir = None

class Tempfiles(object):
    """
    a tracker for files created during a test.  Calling the instance with a file name returns
    the path to that name within the tracked directory and registers it for removal by
    :py:meth:`clean`.
    """
    def __init__(self, tempdir=None):
        if not tempdir:
            tempdir = ensure_tmpdir()
        self._root = tempdir
        self._files = set()

    @property
    def root(self):
        return self._root

    def track(self, filename):
        self._files.add(filename)
        return os.path.join(self._root, filename)

    def mkdir(self, dirname):
        path = self.track(dirname)
        os.mkdir(path)
        return path

    def __call__(self, filename):
        return self.track(filename)

    def clean(self):
        for f in self._files:
            path = os.path.join(self._root, f)
            if os.path.isdir(path):
                shutil.rmtree(path)
            elif os.path.exists(path):
                os.remove(path)
        self._files = set()
