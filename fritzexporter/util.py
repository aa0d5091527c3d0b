import logging
import warnings
from contextlib import contextmanager

from prometheus_client import Counter
from urllib3.exceptions import InsecureRequestWarning


collect_errors = Counter(
    "fritzbox_exporter_collect_errors",
    "Number of collection errors.",
)


def _getLogger(name):
    """
    Retrieve a logger instance.
    """
    return logging.getLogger(name)


def _record_error(log, msg, *args):
    """
    Log a collection error and count it on the process-wide error counter.
    """
    log.error(msg, *args)
    collect_errors.inc()


@contextmanager
def _unverified_tls(verify):
    """
    Ignore urllib3's InsecureRequestWarning for the requests made inside the
    block, if `verify` is off. Other warnings and other callers are untouched.
    """
    with warnings.catch_warnings():
        if verify is False:
            warnings.simplefilter("ignore", InsecureRequestWarning)
        yield
