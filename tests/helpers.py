import os.path as path
import socketserver as sockserver
import threading
import unittest
from functools import partial
from http import server as httpserver

import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from tests.const import LOCALHOST, HTTP_LOCALHOST

XML_DIR = path.join(path.dirname(path.realpath(__file__)), "xml")


def make_response(status_code=200, body="", headers=None, reason=None):
    """
    Build a fully read `requests.Response`, as a transport adapter would
    return it.
    """
    resp = requests.Response()
    resp.status_code = status_code
    resp.reason = reason or httpserver.BaseHTTPRequestHandler.responses.get(
        status_code, ("",))[0]
    resp.headers = CaseInsensitiveDict(headers or {})
    resp._content = body.encode("utf-8") if isinstance(body, str) else body
    resp._content_consumed = True
    resp.encoding = "utf-8"
    return resp


class FakeAdapter(BaseAdapter):
    """
    Transport adapter answering every request with the next queued response
    and keeping the prepared requests for inspection.
    """
    def __init__(self, responses=None):
        super(FakeAdapter, self).__init__()
        self.responses = list(responses or [])
        self.requests = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def send(self, request, **kwargs):
        self.requests.append(request)
        if not self.responses:
            raise requests.ConnectionError("no response queued for %s" % request.url)
        resp = self.responses.pop(0)
        resp.request = request
        resp.url = request.url
        return resp

    def close(self):
        pass


class QuietHandler(httpserver.SimpleHTTPRequestHandler):
    def log_message(self, format, *args):
        pass


class DeviceServerTestCase(unittest.TestCase):
    """
    Serves the descriptor and SCPD documents in tests/xml over HTTP.
    """
    @classmethod
    def setUpClass(cls):
        cls.httpd = sockserver.TCPServer(
            (LOCALHOST, 0), partial(QuietHandler, directory=XML_DIR)
        )
        cls.httpd_thread = threading.Thread(target=cls.httpd.serve_forever)
        cls.httpd_thread.daemon = True
        cls.httpd_thread.start()
        cls.httpd_port = cls.httpd.server_address[1]
        cls.base_url = "%s:%s" % (HTTP_LOCALHOST, cls.httpd_port)

    @classmethod
    def tearDownClass(cls):
        cls.httpd.shutdown()
        cls.httpd.server_close()
