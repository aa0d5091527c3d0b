"""
HTTP Digest authentication (RFC 2617) as spoken by the TR-064 control
endpoints: MD5 with qop=auth only.

Unlike requests' own HTTPDigestAuth, the negotiated header is kept and sent
preemptively with every later call, and the nonce count always starts at 1.
"""
import hashlib
import os
from binascii import hexlify

from requests.auth import AuthBase
from requests.utils import parse_dict_header

from .errors import AuthError
from .util import _getLogger

NONCE_COUNT = 1


def _md5(text):
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def new_cnonce():
    return hexlify(os.urandom(8)).decode("ascii")


def parse_challenge(www_authenticate):
    """
    Parse a `WWW-Authenticate: Digest ...` header value into a dict, filling
    in the default algorithm. Raises AuthError for anything we can't answer.
    """
    if not www_authenticate or not www_authenticate.startswith("Digest "):
        raise AuthError(
            "WWW-Authenticate header is not Digest: %r" % www_authenticate
        )
    challenge = parse_dict_header(www_authenticate[len("Digest "):])

    algorithm = challenge.get("algorithm") or "MD5"
    if algorithm != "MD5":
        raise AuthError("digest algorithm not supported: %s != MD5" % algorithm)
    challenge["algorithm"] = algorithm

    if challenge.get("qop") != "auth":
        raise AuthError("digest qop not supported: %s != auth" % challenge.get("qop"))

    for field in ("realm", "nonce"):
        if challenge.get(field) is None:
            raise AuthError("digest challenge without %s: %r" % (field, www_authenticate))
    return challenge


class DigestAuth(AuthBase):
    """
    Holds the credentials and the last negotiated Authorization header for one
    exporter. Attached to each request, it adds the cached header if there is
    one.
    """

    def __init__(self, username, password):
        self.username = username
        self.password = password
        self.header = None
        self._log = _getLogger("DigestAuth")

    @property
    def has_credentials(self):
        return bool(self.username) and bool(self.password)

    def __call__(self, r):
        if self.header is not None:
            r.headers["Authorization"] = self.header
        return r

    def build_header(self, www_authenticate, uri, cnonce):
        challenge = parse_challenge(www_authenticate)
        nc = "%08x" % NONCE_COUNT

        ha1 = _md5("%s:%s:%s" % (self.username, challenge["realm"], self.password))
        ha2 = _md5("POST:%s" % uri)
        response = _md5(":".join(
            (ha1, challenge["nonce"], nc, cnonce, challenge["qop"], ha2)
        ))

        return (
            'Digest username="%s", realm="%s", nonce="%s", uri="%s", cnonce="%s", '
            'nc=%s, qop=%s, response="%s", algorithm=%s'
        ) % (
            self.username,
            challenge["realm"],
            challenge["nonce"],
            uri,
            cnonce,
            nc,
            challenge["qop"],
            response,
            challenge["algorithm"],
        )

    def negotiate(self, www_authenticate, uri):
        """
        Answer a challenge for a POST to `uri` and cache the resulting header.
        """
        if not self.has_credentials:
            raise AuthError("Unauthorized, but no username and password given")
        self.header = self.build_header(www_authenticate, uri, new_cnonce())
        self._log.debug("Negotiated digest auth for %s", uri)
        return self.header
