"""
The Lua backend: logs in to the gateway's web UI session, POSTs to
/data.lua for every metric's page and picks the values out of the JSON with a
dotted result path.
"""
import hashlib
import json

import requests
from lxml import etree

from .const import (
    DEFAULT_RESULT_KEY, HTTP_TIMEOUT, LUA_DATA_PATH, LUA_INVALID_SID, LUA_LOGIN_PATH)
from .errors import LuaError
from .metric import Exporter, MetricResult
from .util import _getLogger, _record_error, _unverified_tls


def challenge_response(challenge, password):
    """
    Answer a login challenge: MD5 over the UTF-16LE encoding of
    "<challenge>-<password>".
    """
    digest = hashlib.md5(("%s-%s" % (challenge, password)).encode("utf-16-le")).hexdigest()
    return "%s-%s" % (challenge, digest)


def json_path_get(document, path):
    """
    Follow a dotted path into decoded JSON. Numeric parts index lists, '#'
    alone is the length of a list and '#' followed by more parts maps the
    rest of the path over the list. Returns None if the path doesn't exist.
    """
    if not path:
        return document
    parts = path.split(".")
    node = document
    for i, part in enumerate(parts):
        if isinstance(node, list):
            if part == "#":
                rest = ".".join(parts[i + 1:])
                if not rest:
                    return len(node)
                found = [json_path_get(element, rest) for element in node]
                return [value for value in found if value is not None]
            if not part.isdigit() or int(part) >= len(node):
                return None
            node = node[int(part)]
        elif isinstance(node, dict):
            if part not in node:
                return None
            node = node[part]
        else:
            return None
    return node


def to_float(value):
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def to_label(value):
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def _label_fields(record, label_names, element):
    for label_name in label_names:
        record[label_name] = to_label(json_path_get(element, label_name))


def extract_values(node, key, label_names):
    """
    Build result records from the JSON found at a metric's result path. A
    list gives one record per object in it, anything else a single record.
    Result keys and label names may be dotted paths into each object.
    """
    records = []
    if isinstance(node, list):
        for element in node:
            if isinstance(element, list):
                return extract_values(element, key, label_names)
            if not isinstance(element, dict):
                continue
            record = {}
            if not key:
                record[DEFAULT_RESULT_KEY] = 1
            else:
                value = json_path_get(element, key)
                if value is None:
                    continue
                record[key] = to_float(value)
            _label_fields(record, label_names, element)
            records.append(record)
    else:
        record = {(key or DEFAULT_RESULT_KEY): to_float(node)}
        _label_fields(record, label_names, node)
        records.append(record)
    return records


class LuaExporter(Exporter):
    def __init__(self, base_url, username=None, password=None, session=None, timeout=HTTP_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.sid = None
        self.timeout = timeout
        self.session = session or requests.Session()
        if self.base_url.startswith("https://"):
            self.session.verify = False
        self._log = _getLogger("LuaExporter")
        if self.session.verify is False:
            self._log.warning("Certificate verification disabled for %s", self.base_url)

    def __repr__(self):
        return "<LuaExporter '%s'>" % (self.base_url)

    def _session_info(self, params=None):
        try:
            with _unverified_tls(self.session.verify):
                resp = self.session.get(
                    self.base_url + LUA_LOGIN_PATH, params=params, timeout=self.timeout)
            resp.raise_for_status()
            root = etree.fromstring(resp.content)
        except (requests.RequestException, etree.XMLSyntaxError) as exc:
            raise LuaError("reading session info failed: %s" % exc)
        return (
            (root.findtext("SID") or "").strip(),
            (root.findtext("Challenge") or "").strip(),
        )

    def logon(self):
        """
        Get a session id, unless we already have one.
        """
        if self.sid:
            return self.sid
        _, challenge = self._session_info()
        sid, _ = self._session_info(dict(
            response=challenge_response(challenge, self.password or ""),
            username=self.username or "",
        ))
        if not sid or sid == LUA_INVALID_SID:
            raise LuaError("login as %r failed" % self.username)
        self._log.debug("Logged in to %s", self.base_url)
        self.sid = sid
        return sid

    def request(self, page):
        """
        POST a page request to data.lua and return the decoded JSON.
        """
        try:
            with _unverified_tls(self.session.verify):
                resp = self.session.post(
                    self.base_url + LUA_DATA_PATH,
                    data=dict(sid=self.sid, page=page),
                    timeout=self.timeout,
                )
        except requests.RequestException as exc:
            raise LuaError("Lua request for page %s failed: %s" % (page, exc))
        if resp.status_code != 200:
            # Most likely the session expired; log in again next pass.
            self.sid = None
            raise LuaError("Lua request response not OK: %s %s" % (resp.status_code, resp.reason))
        try:
            return resp.json()
        except ValueError as exc:
            # Usually the login page of an expired session.
            self.sid = None
            raise LuaError("Lua response for page %s is not JSON: %s" % (page, exc))

    def _request(self, pages, metric):
        result = MetricResult(metric)
        try:
            if metric.page not in pages:
                pages[metric.page] = self.request(metric.page)
            node = json_path_get(pages[metric.page], metric.result_path)
            if node is None:
                raise LuaError("no %r in page %s" % (metric.result_path, metric.page))
            result.records = extract_values(
                node, metric.result_key, metric.prom_desc.var_labels)
        except LuaError as exc:
            result.errors.append(exc)
            _record_error(self._log, "%s: %s", metric.name, exc)
        return result

    def collect(self, metrics):
        self.logon()
        pages = {}
        return [self._request(pages, metric) for metric in metrics]
