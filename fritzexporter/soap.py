from textwrap import dedent
from xml.sax.saxutils import escape

from lxml import etree

from .const import HTTP_TIMEOUT, SOAP_ENCODING, SOAP_ENV_NS, TEXT_XML
from .errors import AuthError, ERR_CODE_DESCRIPTIONS, SOAPError, UnexpectedResponse
from .marshal import marshal_value
from .util import _getLogger

CHUNK_SIZE = 4096


def build_envelope(action_name, service_type, argument=None):
    """
    Build the SOAP 1.1 request body for `action_name`, with at most one
    (name, value) argument.
    """
    arg_value = ""
    if argument is not None:
        name, value = argument
        if isinstance(value, bool):
            value = "true" if value else "false"
        arg_value = "<%s>%s</%s>" % (name, escape(str(value)), name)
    return dedent("""
        <?xml version="1.0" encoding="utf-8"?>
        <s:Envelope xmlns:s="{soap_env}" s:encodingStyle="{soap_encoding}">
         <s:Body>
          <u:{action_name} xmlns:u="{service_type}">{arg_value}</u:{action_name}>
         </s:Body>
        </s:Envelope>
        """.format(
            soap_env=SOAP_ENV_NS,
            soap_encoding=SOAP_ENCODING,
            action_name=action_name,
            service_type=escape(service_type, {'"': "&quot;"}),
            arg_value=arg_value,
        )).strip()


def _find_local(root, name):
    for node in root.iter(tag=etree.Element):
        if etree.QName(node).localname == name:
            return node
    return None


def _findtext_local(root, name):
    node = _find_local(root, name)
    if node is None:
        return None
    return (node.text or "").strip()


def parse_fault(content):
    """
    Turn a SOAP Fault envelope into a SOAPError. Returns None if the body is
    not a fault we can read.
    """
    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError:
        return None
    fault = _find_local(root, "Fault")
    if fault is None:
        return None

    fault_string = _findtext_local(fault, "faultstring") or ""
    if fault_string != "UPnPError":
        return SOAPError(fault_string)

    error_code = _findtext_local(fault, "errorCode")
    try:
        error_code = int(error_code)
    except (TypeError, ValueError):
        error_code = None
    description = _findtext_local(fault, "errorDescription")
    if description is None and error_code is not None:
        description = ERR_CODE_DESCRIPTIONS.get(error_code)
    return SOAPError(fault_string, error_code, description)


def parse_response(action, chunks):
    """
    Pull-parse a SOAP response body. Every element named after one of the
    action's out arguments must start with text or be empty; its converted
    value is stored under the name of the argument's state variable.
    """
    parser = etree.XMLPullParser(events=("start", "end"), resolve_entities=False)
    result = {}
    pending = None

    def store(arg, text):
        if arg.state_variable is None:
            raise UnexpectedResponse(
                "argument %s has no state variable %r"
                % (arg.name, arg.related_state_variable)
            )
        result[arg.state_variable.name] = marshal_value(arg.state_variable.datatype, text)

    def handle(events):
        nonlocal pending
        for event, node in events:
            if pending is not None:
                pending_node, arg = pending
                if event == "end" and node is pending_node:
                    store(arg, node.text or "")
                    pending = None
                    continue
                if event != "start" or not pending_node.text:
                    raise UnexpectedResponse("invalid SOAP response")
                # Text followed by a child element: the text is the value.
                store(arg, pending_node.text)
                pending = None
            if event == "start":
                arg = action.find_out_argument(etree.QName(node).localname)
                if arg is not None:
                    pending = (node, arg)

    try:
        for chunk in chunks:
            parser.feed(chunk)
            handle(parser.read_events())
        parser.close()
        handle(parser.read_events())
    except etree.XMLSyntaxError as exc:
        raise UnexpectedResponse("invalid SOAP response: %s" % exc)
    return result


class SOAP(object):
    """SOAP (Simple Object Access Protocol) implementation
    This class defines a simple SOAP client bound to one service control URL.
    """
    def __init__(self, session, url, control_url, service_type, auth=None, timeout=HTTP_TIMEOUT):
        self.session = session
        self.url = url
        self.control_url = control_url
        self.service_type = service_type
        self.auth = auth
        self.timeout = timeout
        self._log = _getLogger('SOAP')

    def _post(self, body, headers):
        return self.session.post(
            self.url,
            data=body.encode("utf-8"),
            headers=headers,
            auth=self.auth,
            timeout=self.timeout,
            stream=True,
        )

    def call(self, action_name, argument=None):
        """
        POST the action and return the successful response, answering one
        digest challenge on the way if needed.
        """
        body = build_envelope(action_name, self.service_type, argument)
        headers = {
            'SOAPAction': '%s#%s' % (self.service_type, action_name),
            'Content-Type': TEXT_XML,
        }

        resp = self._post(body, headers)
        if resp.status_code == 401:
            www_auth = resp.headers.get('WWW-Authenticate')
            resp.close()
            if not www_auth or self.auth is None or not self.auth.has_credentials:
                raise AuthError("%s: Unauthorized, but no username and password given" % action_name)
            try:
                self.auth.negotiate(www_auth, self.control_url)
            except AuthError as exc:
                raise AuthError("%s: %s" % (action_name, exc))
            resp = self._post(body, headers)

        if resp.status_code != 200:
            try:
                error = None
                if resp.status_code == 500:
                    error = parse_fault(resp.content)
                if error is None:
                    error = UnexpectedResponse(
                        "%s: %s (%d)" % (action_name, resp.reason, resp.status_code)
                    )
            finally:
                resp.close()
            raise error
        return resp
