"""
Utilities for loading configuration data and setting up logging.

Configuration is a (possibly nested) dictionary, typically read from a YAML or JSON file.
The parameters recognized by the npmreg package include:

``path_prefix``
     the base URL (or path) that tarball URLs in package metadata documents are rebased
     under.  If not set, tarball URLs are left as provided by the publishing client.
``logfile``
     the name of the file to write log messages to; a relative path is taken to be relative
     to ``logdir``.
``logdir``
     the directory where log files are written (default: the value of the ``NPMREG_LOG_DIR``
     environment variable or else the current directory).
``loglevel``
     the minimum level of messages to write to the log file (default: ``NORMAL``)
"""
import os, json, logging
from collections.abc import Mapping
from copy import deepcopy
from typing import Optional

import yaml

from .exceptions import ConfigurationException

__all__ = [
    "NORMAL", "load_from_file", "merge_config", "path_prefix_from", "configure_log",
    "ConfigurationException"
]

NORMAL = 15
logging.addLevelName(NORMAL, "NORMAL")

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
LOG_DIR_ENV_VAR = "NPMREG_LOG_DIR"

global_logdir = None
global_logfile = None

def load_from_file(configfile: str) -> dict:
    """
    read the configuration data from the given file.  The format is determined from the file's
    extension: ``.yml`` or ``.yaml`` is read as YAML and ``.json`` is read as JSON.

    :param str configfile:  the path to the configuration file
    :raises ConfigurationException:  if the file cannot be read or parsed or does not contain
                                     a dictionary.
    """
    ext = os.path.splitext(configfile)[1].lower()
    if ext not in (".yml", ".yaml", ".json"):
        raise ConfigurationException("%s: unsupported configuration file type: %s" % (configfile, ext))

    try:
        with open(configfile) as fd:
            if ext == ".json":
                data = json.load(fd)
            else:
                data = yaml.safe_load(fd)
    except OSError as ex:
        raise ConfigurationException("%s: unable to read configuration: %s" % (configfile, str(ex)),
                                     cause=ex)
    except (ValueError, yaml.YAMLError) as ex:
        raise ConfigurationException("%s: unable to parse configuration: %s" % (configfile, str(ex)),
                                     cause=ex)

    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise ConfigurationException("%s: configuration is not a dictionary" % configfile)
    return dict(data)

def merge_config(primary: Mapping, defaults: Mapping) -> dict:
    """
    merge two configurations, returning a new dictionary.  Values in ``primary`` override those
    in ``defaults``; where both hold a dictionary under the same name, the dictionaries are
    merged recursively.  Neither input is changed.
    """
    out = deepcopy(dict(defaults))
    for key, val in primary.items():
        if isinstance(val, Mapping) and isinstance(out.get(key), Mapping):
            out[key] = merge_config(val, out[key])
        else:
            out[key] = deepcopy(val)
    return out

def path_prefix_from(config: Mapping) -> Optional[str]:
    """
    return the tarball path prefix set in the given configuration or None if it is not set.
    :raises ConfigurationException:  if the ``path_prefix`` parameter is not a string
    """
    if not config:
        return None
    prefix = config.get('path_prefix')
    if prefix is not None and not isinstance(prefix, str):
        raise ConfigurationException("path_prefix: value is not a string: " + repr(prefix))
    return prefix

def configure_log(logfile=None, level=None, format=None, config=None, addstderr=False):
    """
    configure the root logger to send messages to a file.  Parameters given as arguments
    override those given in ``config``.

    :param str logfile:    the file to write messages to; a relative path is resolved against
                           the configured log directory.
    :param int level:      the minimum level of messages to record
    :param str format:     the message format (as used by :py:class:`logging.Formatter`)
    :param dict config:    configuration data that may contain ``logfile``, ``logdir``, and
                           ``loglevel`` parameters.
    :param bool addstderr: if True, also send messages to standard error
    """
    global global_logdir, global_logfile
    if not config:
        config = {}

    if not logfile:
        logfile = config.get('logfile', 'npmreg.log')
    if level is None:
        level = config.get('loglevel', NORMAL)
        if isinstance(level, str):
            lvl = logging.getLevelName(level.upper())
            if not isinstance(lvl, int):
                raise ConfigurationException("loglevel: unrecognized level name: " + level)
            level = lvl
    if not format:
        format = LOG_FORMAT

    if not os.path.isabs(logfile):
        logdir = config.get('logdir', os.environ.get(LOG_DIR_ENV_VAR, os.getcwd()))
        if not os.path.isdir(logdir):
            raise ConfigurationException("logdir: not an existing directory: " + logdir)
        logfile = os.path.join(logdir, logfile)
    global_logdir = os.path.dirname(logfile)
    global_logfile = logfile

    rootlog = logging.getLogger()
    hdlr = logging.FileHandler(logfile)
    hdlr.setLevel(level)
    hdlr.setFormatter(logging.Formatter(format))
    rootlog.addHandler(hdlr)
    if addstderr:
        hdlr = logging.StreamHandler()
        hdlr.setLevel(level)
        hdlr.setFormatter(logging.Formatter(format))
        rootlog.addHandler(hdlr)
    if rootlog.level == logging.NOTSET or rootlog.level > level:
        rootlog.setLevel(level)
