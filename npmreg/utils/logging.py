"""
Logging helpers shared across the npmreg modules
"""
import logging

# quieter than DEBUG: for per-item chatter (e.g. each tarball rebased)
BLAB = logging.DEBUG - 1
logging.addLevelName(BLAB, "BLAB")

def blab(log, msg, *args, **kwargs):
    """
    record a message at the BLAB level, below DEBUG.  Such messages are suppressed when the
    log is set to DEBUG; they only appear when a handler is set explicitly to BLAB.

    :param Logger log:  the Logger to send the message to
    :param str    msg:  the message or message template
    :param args:        values to insert into the msg template
    :param kwargs:      other keywords accepted by ``Logger.log()``
    """
    log.log(BLAB, msg, *args, **kwargs)
