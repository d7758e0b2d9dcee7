"""
a command-line tool for merging an ``npm publish`` upload into a package's metadata document
outside of a running registry (e.g. to repair or migrate stored ``meta.json`` files).

Usage::

    python -m npmreg.cli [-c CONFIG] [-P PREFIX] [-o OUTFILE] UPLOAD [META]

If META is not given, the upload is treated as the package's first publication.  The merged
document is written in its serialized form to OUTFILE or to standard out.
"""
import os, sys, json, logging, argparse
from collections import OrderedDict
from collections.abc import Mapping

from . import config as cfgmod
from .meta import Meta
from .exceptions import (ConfigurationException, MalformedUploadError, UnrecognizedTarballPathError,
                         PatchApplicationError)

description = """merge the versions uploaded by npm publish into a package's metadata document,
rebasing tarball URLs under a path prefix if one is configured"""
epilog = ""
def_progname = "npmreg"

# exit statuses
READ_FAILURE_EXIT = 3
WRITE_FAILURE_EXIT = 4
CONFIG_ERROR_EXIT = 6
MALFORMED_UPLOAD_EXIT = 11
UNRECOGNIZED_TARBALL_EXIT = 12
PATCH_FAILURE_EXIT = 13

log = logging.getLogger("npmreg.cli")

def define_options(progname, parser=None):
    """
    define command-line arguments
    """
    if not parser:
        parser = argparse.ArgumentParser(progname, None, description, epilog)

    parser.add_argument("upload", metavar="UPLOAD", type=str,
                        help="the JSON publish document uploaded by npm publish ('-' for stdin)")
    parser.add_argument("meta", metavar="META", type=str, nargs='?',
                        help="the package's current metadata document; if not given, a new "+
                             "document is created")
    parser.add_argument("-o", "--output-file", metavar="FILE", type=str, dest="outfile",
                        help="write the merged document to FILE instead of standard out")
    parser.add_argument("-P", "--path-prefix", metavar="PREFIX", type=str, dest="pathpref",
                        help="rebase tarball URLs under PREFIX (over-riding the path_prefix "+
                             "configuration parameter)")
    parser.add_argument("-c", "--config", metavar="FILE", type=str, dest="conf",
                        help="read configuration from FILE (YAML or JSON)")
    parser.add_argument("-l", "--logfile", metavar="FILE", type=str, dest="logfile",
                        help="record log messages to FILE")
    parser.add_argument("-D", "--debug", action="store_true", dest="debug", default=False,
                        help="record DEBUG messages to the log file")
    parser.add_argument("-q", "--quiet", action="store_true", dest="quiet", default=False,
                        help="do not print error messages to standard error")

    return parser

def set_options(progname, args):
    """
    define and parse the command-line options
    """
    return define_options(progname).parse_args(args)

def load_config(opts) -> dict:
    """
    assemble the configuration from the config file (if given) and the command-line options;
    options given on the command line win.
    """
    filecfg = {}
    if opts.conf:
        filecfg = cfgmod.load_from_file(opts.conf)

    cmdcfg = {}
    if opts.pathpref is not None:
        cmdcfg['path_prefix'] = opts.pathpref
    if opts.logfile:
        cmdcfg['logfile'] = os.path.abspath(opts.logfile)
    if opts.debug:
        cmdcfg['loglevel'] = "DEBUG"

    return cfgmod.merge_config(cmdcfg, filecfg)

def read_doc(path: str, what: str) -> Mapping:
    """
    read a JSON object from a file (or stdin if path is "-").
    :raises OSError:     if the file cannot be read
    :raises ValueError:  if the file does not contain a JSON object
    """
    if path == '-':
        doc = json.load(sys.stdin, object_pairs_hook=OrderedDict)
    else:
        with open(path) as fd:
            doc = json.load(fd, object_pairs_hook=OrderedDict)
    if not isinstance(doc, Mapping):
        raise ValueError(f"{path}: {what} is not a JSON object")
    return doc

def write_doc(meta: Meta, outfile: str = None) -> int:
    """
    write out the serialized form of a metadata document, returning the number of bytes written
    """
    if outfile and outfile != '-':
        with open(outfile, 'wb') as fd:
            return _write_chunks(meta.serialize(), fd)

    out = getattr(sys.stdout, 'buffer', None)
    if out is not None:
        n = _write_chunks(meta.serialize(), out)
        out.flush()
        return n

    n = 0
    for chunk in meta.serialize():
        n += len(chunk)
        sys.stdout.write(chunk.decode('utf-8'))
    return n

def _write_chunks(chunks, fd):
    n = 0
    for chunk in chunks:
        fd.write(chunk)
        n += len(chunk)
    return n

def merge(uploaded: Mapping, current: Mapping = None, pathpref: str = None) -> Meta:
    """
    merge an upload into a metadata document, creating a new document if current is None
    """
    if current is None:
        return Meta.from_upload(uploaded, pathpref)
    return Meta(current, pathpref).update(uploaded)

def main(progname=None, args=[]):
    """
    run the tool, returning the exit status
    """
    if not progname:
        progname = def_progname
    else:
        progname = os.path.basename(progname)
        if progname.endswith(".py"):
            progname = progname[:-1*len(".py")]

    opts = set_options(progname, args)

    def fail(message, stat):
        log.error(message)
        if not opts.quiet:
            print(f"{progname}: {message}", file=sys.stderr)
        return stat

    try:
        config = load_config(opts)
        pathpref = cfgmod.path_prefix_from(config)
        if 'logfile' in config:
            cfgmod.configure_log(config=config)
    except ConfigurationException as ex:
        return fail("configuration error: "+str(ex), CONFIG_ERROR_EXIT)

    try:
        uploaded = read_doc(opts.upload, "upload")
        current = read_doc(opts.meta, "metadata document") if opts.meta else None
    except (OSError, ValueError) as ex:
        return fail("unable to read input: "+str(ex), READ_FAILURE_EXIT)

    try:
        meta = merge(uploaded, current, pathpref)
    except UnrecognizedTarballPathError as ex:
        return fail(str(ex), UNRECOGNIZED_TARBALL_EXIT)
    except MalformedUploadError as ex:
        return fail("malformed upload: "+str(ex), MALFORMED_UPLOAD_EXIT)
    except PatchApplicationError as ex:
        return fail(str(ex), PATCH_FAILURE_EXIT)

    try:
        n = write_doc(meta, opts.outfile)
    except OSError as ex:
        return fail("unable to write output: "+str(ex), WRITE_FAILURE_EXIT)

    log.log(cfgmod.NORMAL, "Wrote %d bytes for %s (%d version(s))", n,
            meta.json.get('name', '?'), len(meta.versions))
    return 0

if __name__ == "__main__":
    try:
        sys.exit(main(sys.argv[0], sys.argv[1:]))
    except Exception as ex:
        log.exception(ex)
        print("Unexpected error: "+str(ex), file=sys.stderr)
        sys.exit(200)
