"""
module for updating a package's metadata document (its ``meta.json``) as new versions are
published.

When a client runs ``npm publish``, it uploads a JSON document describing the package that
includes, under its ``versions`` property, a descriptor for the version being published (and
under ``dist-tags``, the tags that should point to it).  The registry merges this into the
metadata document it keeps for the package.  While doing so, the registry can rebase the tarball
download URLs embedded by the client (``versions/{v}/dist/tarball``) under its own path prefix so
that downloads are routed through the registry.

A :py:class:`Meta` instance wraps a metadata document as an immutable value:
:py:meth:`Meta.update` computes a JSON Patch from the upload and applies it to a copy of the
document, returning a new ``Meta``.  This allows a ``Meta`` to be shared by concurrent callers
without locking; deciding which of several concurrently produced documents gets persisted is left
to the storage layer.
"""
import json, re, logging, datetime
from collections import OrderedDict
from collections.abc import Mapping
from copy import deepcopy
from typing import Iterable, Iterator, List, Optional, Union

from jsonpatch import JsonPatch, JsonPatchException
from jsonpointer import JsonPointer, JsonPointerException

from .exceptions import MalformedUploadError, UnrecognizedTarballPathError, PatchApplicationError
from .utils.logging import blab

__all__ = [ "Meta", "non_relative_part", "skeleton_for", "TARBALL_PATH_PAT" ]

log = logging.getLogger("npmreg.meta")

# the scoped-package tarball path: @scope/name/-/@scope/name-version.tgz
TARBALL_PATH_PAT = r"@[\w-]+/[\w-]+/-/@[\w-]+/[\w.-]+"
_tarball_path_re = re.compile(TARBALL_PATH_PAT, re.ASCII)

def non_relative_part(tarball: str) -> str:
    """
    extract from a tarball URL the path segment that identifies the package and its tarball
    file, independent of the URL's scheme, host, and base path.  For example, given
    ``https://host/base/@scope/pkg/-/@scope/pkg-1.0.0.tgz``, ``@scope/pkg/-/@scope/pkg-1.0.0.tgz``
    is returned.

    Only scoped package paths are recognized; the path of an unscoped package (e.g.
    ``pkg/-/pkg-1.0.0.tgz``) will not match.

    :param str tarball:  the tarball URL
    :raises UnrecognizedTarballPathError:  if no scoped-package path can be found in the URL
    """
    if not isinstance(tarball, str):
        raise UnrecognizedTarballPathError(tarball, "Tarball URL is not a string: " + repr(tarball))
    m = _tarball_path_re.search(tarball)
    if not m:
        raise UnrecognizedTarballPathError(tarball)
    return m.group(0)

def skeleton_for(uploaded: Mapping) -> OrderedDict:
    """
    return the minimal metadata document for the package described by an uploaded publish
    document.  This is the document that the upload gets merged into when the package is
    published for the first time.  It has no versions and no dist-tags.

    :param Mapping uploaded:  the publish document uploaded by the client
    :raises MalformedUploadError:  if the upload does not provide a package name
    """
    if not isinstance(uploaded, Mapping):
        raise MalformedUploadError("Uploaded publish document is not a JSON object")
    name = uploaded.get('name') or uploaded.get('_id')
    if not name or not isinstance(name, str):
        raise MalformedUploadError("Uploaded publish document is missing a package name")

    out = OrderedDict([
        ("_id", name),
        ("name", name)
    ])
    for prop in ("description", "readme"):
        if isinstance(uploaded.get(prop), str):
            out[prop] = uploaded[prop]
    out["dist-tags"] = OrderedDict()
    out["versions"] = OrderedDict()
    out["time"] = OrderedDict([("created", _now_iso())])
    out["users"] = OrderedDict()
    out["_attachments"] = OrderedDict()
    return out

def _now_iso():
    return datetime.datetime.now(datetime.timezone.utc).isoformat(timespec='milliseconds') \
                   .replace("+00:00", "Z")

def _ptr(*parts):
    return JsonPointer.from_parts(parts).path

class Meta(object):
    """
    a package metadata document (``meta.json``), treated as an immutable value.

    The document is a JSON object that holds, among other things, a ``dist-tags`` object mapping
    tag names (like "latest") to version strings and a ``versions`` object mapping version strings
    to version descriptors.
    """

    content_type = "application/json"

    def __init__(self, json: Mapping, pathpref: Optional[str] = None):
        """
        wrap a metadata document

        :param Mapping json:    the metadata document; a private copy is kept
        :param str pathpref:    the base URL or path to rebase uploaded tarball URLs under; if
                                None, tarball URLs are not rewritten.
        :raises TypeError:  if json is not a Mapping
        """
        if not isinstance(json, Mapping):
            raise TypeError("Meta: metadata document is not a JSON object: " + type(json).__name__)
        self._json = deepcopy(json)
        self._pathpref = pathpref

    @classmethod
    def _wrap(cls, json, pathpref):
        # take ownership of json without copying
        out = cls.__new__(cls)
        out._json = json
        out._pathpref = pathpref
        return out

    @classmethod
    def from_json(cls, data: Union[str, bytes, Iterable[bytes]], pathpref: Optional[str] = None):
        """
        create a Meta from its serialized JSON form
        :param data:  the JSON text as a str, bytes, or an iterable of byte chunks (as returned
                      by :py:meth:`serialize`)
        :param str pathpref:  the tarball path prefix (see :py:meth:`__init__`)
        :raises ValueError:  if the data is not legal JSON or is not a JSON object
        """
        if not isinstance(data, (str, bytes, bytearray)):
            data = b"".join(data)
        doc = json.loads(data, object_pairs_hook=OrderedDict)
        if not isinstance(doc, Mapping):
            raise ValueError("Metadata document is not a JSON object")
        return cls._wrap(doc, pathpref)

    @classmethod
    def from_upload(cls, uploaded: Mapping, pathpref: Optional[str] = None):
        """
        create the metadata document for a package being published for the first time.
        :param Mapping uploaded:  the publish document uploaded by the client
        :param str pathpref:  the tarball path prefix (see :py:meth:`__init__`)
        :raises MetaUpdateError:  if the upload is malformed (see :py:meth:`update`)
        """
        return cls._wrap(skeleton_for(uploaded), pathpref).update(uploaded)

    @property
    def json(self) -> Mapping:
        """
        a copy of the wrapped metadata document
        """
        return deepcopy(self._json)

    @property
    def pathpref(self) -> Optional[str]:
        """
        the prefix that uploaded tarball URLs get rebased under, or None if they are not rewritten
        """
        return self._pathpref

    @property
    def versions(self) -> List[str]:
        """
        the sorted list of versions described in this document
        """
        return sorted(self._json.get('versions') or {})

    @property
    def dist_tags(self) -> Mapping:
        """
        a copy of the document's dist-tags
        """
        return deepcopy(self._json.get('dist-tags', {}))

    def tarball(self, version: str) -> str:
        """
        return the tarball URL recorded for the given version
        :raises KeyError:  if the version is not described in this document
        """
        return self._json.get('versions', {})[version]['dist']['tarball']

    def update(self, uploaded: Mapping):
        """
        return a new Meta in which the version descriptors and dist-tags from an ``npm publish``
        upload have been merged into this document.  The uploaded ``dist-tags`` replace the
        current ones entirely; each uploaded version is added, replacing any existing descriptor
        for the same version, while other versions are left untouched.  If a path prefix is set,
        the tarball URL of each uploaded version is rebased under the prefix.  This Meta is not
        changed.

        :param Mapping uploaded:  the publish document uploaded by the client
        :raises MalformedUploadError:  if the upload lacks ``versions`` or ``dist-tags`` or (when
                                 tarballs are rewritten) a version lacks a ``dist.tarball`` URL
        :raises UnrecognizedTarballPathError:  if tarballs are rewritten and a tarball URL has
                                 no recognizable scoped-package path
        :raises PatchApplicationError:  if the upload cannot be merged into this document's
                                 structure
        """
        patch = self._patch_for(uploaded)
        try:
            updated = patch.apply(self._json)
        except (JsonPatchException, JsonPointerException) as ex:
            raise PatchApplicationError("Unable to merge upload into metadata document: "+str(ex),
                                        cause=ex) from ex

        log.debug("Merged %d version(s) into metadata document%s", len(uploaded['versions']),
                  (self._pathpref is not None and " (tarballs rebased)") or "")
        return self._wrap(updated, self._pathpref)

    def _patch_for(self, uploaded):
        if not isinstance(uploaded, Mapping):
            raise MalformedUploadError("Uploaded publish document is not a JSON object")
        for prop in ("versions", "dist-tags"):
            if prop not in uploaded:
                raise MalformedUploadError("Uploaded publish document is missing property: "+prop)
        versions = uploaded['versions']
        if not isinstance(versions, Mapping):
            raise MalformedUploadError("Uploaded versions property is not a JSON object")
        if not isinstance(uploaded['dist-tags'], Mapping):
            raise MalformedUploadError("Uploaded dist-tags property is not a JSON object")

        ops = [ {"op": "add", "path": _ptr("dist-tags"), "value": deepcopy(uploaded['dist-tags'])} ]
        for ver, desc in versions.items():
            if not isinstance(desc, Mapping):
                raise MalformedUploadError("Uploaded version %s is not a JSON object" % ver)
            ops.append({"op": "add", "path": _ptr("versions", ver), "value": deepcopy(desc)})

            if self._pathpref is not None:
                tarball = desc.get('dist')
                tarball = tarball.get('tarball') if isinstance(tarball, Mapping) else None
                if not isinstance(tarball, str):
                    raise MalformedUploadError("Uploaded version %s is missing a dist.tarball URL"
                                               % ver)
                tarball = self._pathpref + non_relative_part(tarball)
                blab(log, "Rebasing tarball for version %s: %s", ver, tarball)
                ops.append({"op": "replace", "path": _ptr("versions", ver, "dist", "tarball"),
                            "value": tarball})

        return JsonPatch(ops)

    def serialize(self) -> Iterator[bytes]:
        """
        generate the UTF-8-encoded JSON form of this document.  The document is serialized
        afresh on each call and delivered as a single chunk.
        """
        yield json.dumps(self._json, separators=(',', ':'), ensure_ascii=False).encode('utf-8')

    def __eq__(self, other):
        if not isinstance(other, Meta):
            return NotImplemented
        return self._json == other._json and self._pathpref == other._pathpref

    def __repr__(self):
        return "Meta(%s, versions=%s)" % (self._json.get('name', '?'), self.versions)
