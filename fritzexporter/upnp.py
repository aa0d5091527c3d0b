from functools import partial

import requests
from lxml import etree

from .auth import DigestAuth
from .const import HTTP_TIMEOUT, IGD_DESCRIPTOR, TR64_DESCRIPTOR
from .errors import (
    DiscoveryError, InvalidActionException, ResolutionError, UPNPError)
from .metric import Exporter, MetricResult
from .soap import CHUNK_SIZE, SOAP, parse_response
from .util import _getLogger, _record_error, _unverified_tls

CALL_ERRORS = (UPNPError, requests.RequestException)

DEVICE_ATTRIBUTES = (
    ("device_type", "deviceType"),
    ("friendly_name", "friendlyName"),
    ("manufacturer", "manufacturer"),
    ("manufacturer_url", "manufacturerURL"),
    ("model_description", "modelDescription"),
    ("model_name", "modelName"),
    ("model_number", "modelNumber"),
    ("model_url", "modelURL"),
    ("udn", "UDN"),
    ("presentation_url", "presentationURL"),
)


def cache_key(service_type, action_name, argument=None):
    key = "%s|%s" % (service_type, action_name)
    if argument is not None:
        key += "|%s|%s" % argument
    return key


class Device(object):
    """
    UPNP Device represention. A node of the device tree read from the
    descriptor documents; it owns its services and its sub-devices.
    """

    def __init__(self):
        self.services = []
        self.devices = []
        for attr, _ in DEVICE_ATTRIBUTES:
            setattr(self, attr, None)

    def __repr__(self):
        return "<Device '%s'>" % (self.friendly_name)

    def read(self, node):
        """
        Read a <device> element into this device. Reading a second element
        into the same device keeps what is already there and adds to it.
        """
        findtext = partial(node.findtext, namespaces=node.nsmap)
        findall = partial(node.findall, namespaces=node.nsmap)

        for attr, tag in DEVICE_ATTRIBUTES:
            text = findtext(tag)
            if text is not None:
                setattr(self, attr, text.strip())

        for service_node in findall("serviceList/service"):
            self.services.append(Service.from_node(service_node))

        for device_node in findall("deviceList/device"):
            device = Device()
            device.read(device_node)
            self.devices.append(device)

    def walk(self):
        """
        Yield this device and all its sub-devices, depth first.
        """
        yield self
        for device in self.devices:
            for sub in device.walk():
                yield sub


class StateVariable(object):
    def __init__(self, name, datatype, default_value=None):
        self.name = name
        self.datatype = datatype
        self.default_value = default_value

    def __repr__(self):
        return "<StateVariable '%s' (%s)>" % (self.name, self.datatype)

    def as_dict(self):
        return dict(Name=self.name, DataType=self.datatype, DefaultValue=self.default_value or "")


class Argument(object):
    def __init__(self, name, direction, related_state_variable):
        self.name = name
        self.direction = direction
        self.related_state_variable = related_state_variable
        self.state_variable = None

    def __repr__(self):
        return "<Argument '%s' (%s)>" % (self.name, self.direction)

    def as_dict(self):
        return dict(
            Name=self.name,
            Direction=self.direction,
            RelatedStateVariable=self.related_state_variable,
            StateVariable=self.state_variable.as_dict() if self.state_variable else None,
        )


class Action(object):
    def __init__(self, service, name, arguments=None):
        self.service = service
        self.name = name
        self.arguments = list(arguments or [])
        self.argument_map = dict((arg.name, arg) for arg in self.arguments)

    def __repr__(self):
        return "<Action '%s'>" % (self.name)

    @property
    def arguments_in(self):
        return [arg for arg in self.arguments if arg.direction == "in"]

    @property
    def arguments_out(self):
        return [arg for arg in self.arguments if arg.direction != "in"]

    @property
    def is_get_only(self):
        """
        An action with no input arguments and at least one output argument
        looks like a query for information.
        """
        return bool(self.arguments) and not self.arguments_in

    def find_out_argument(self, name):
        arg = self.argument_map.get(name)
        if arg is None or arg.direction == "in":
            return None
        return arg


class Service(object):
    """
    Service Control Point Definition. This class reads an SCPD XML file and
    parses the actions and state variables.
    """

    def __init__(self, service_type, service_id, control_url, scpd_url, event_sub_url):
        self.service_type = service_type
        self.service_id = service_id
        self.control_url = control_url
        self.scpd_url = scpd_url
        self.event_sub_url = event_sub_url

        self.actions = []
        self.action_map = {}
        self.statevars = {}
        self._log = _getLogger("Service")

    def __repr__(self):
        return "<Service service_id='%s'>" % (self.service_id)

    @classmethod
    def from_node(cls, node):
        findtext = partial(node.findtext, namespaces=node.nsmap, default="")
        return cls(
            findtext("serviceType").strip(),
            findtext("serviceId").strip(),
            findtext("controlURL").strip(),
            findtext("SCPDURL").strip(),
            findtext("eventSubURL").strip(),
        )

    def find_action(self, action_name):
        return self.action_map.get(action_name)

    def read_scpd(self, data):
        scpd_xml = etree.fromstring(data)
        findall = partial(scpd_xml.findall, namespaces=scpd_xml.nsmap)
        self._read_state_vars(findall)
        self._read_actions(findall)

    def _read_state_vars(self, findall):
        self.statevars = {}
        for statevar_node in findall("serviceStateTable/stateVariable"):
            findtext = partial(statevar_node.findtext, namespaces=statevar_node.nsmap, default="")
            name = findtext("name").strip()
            self.statevars[name] = StateVariable(
                name,
                findtext("dataType").strip(),
                findtext("defaultValue").strip(),
            )

    def _read_actions(self, findall):
        self.actions = []
        self.action_map = {}
        for action_node in findall("actionList/action"):
            name = action_node.findtext("name", default="", namespaces=action_node.nsmap).strip()
            arguments = []
            for arg_node in action_node.findall(
                "argumentList/argument", namespaces=action_node.nsmap
            ):
                findtext = partial(arg_node.findtext, namespaces=arg_node.nsmap, default="")
                arg = Argument(
                    findtext("name").strip(),
                    findtext("direction").strip(),
                    findtext("relatedStateVariable").strip(),
                )
                arg.state_variable = self.statevars.get(arg.related_state_variable)
                if arg.state_variable is None:
                    self._log.warning(
                        "%s.%s: argument %s refers to unknown state variable %r",
                        self.service_type, name, arg.name, arg.related_state_variable,
                    )
                arguments.append(arg)
            action = Action(self, name, arguments)
            self.action_map[name] = action
            self.actions.append(action)


class UPnPExporter(Exporter):
    """
    Talks TR-064 (UPnP SOAP actions) to one gateway. Discovery happens once in
    `load_services()`; every `collect()` call is one polling pass.
    """

    def __init__(self, base_url, username=None, password=None, session=None, timeout=HTTP_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.device = Device()
        self.services = {}
        self.auth = DigestAuth(username, password)
        self.timeout = timeout
        self.session = session or requests.Session()
        if self.base_url.startswith("https://"):
            # Gateways ship self signed certificates.
            self.session.verify = False
        self._log = _getLogger("UPnPExporter")
        if self.session.verify is False:
            self._log.warning("Certificate verification disabled for %s", self.base_url)

    def __repr__(self):
        return "<UPnPExporter '%s'>" % (self.base_url)

    def _get(self, path):
        url = self.base_url + path
        self._log.debug("Reading %s", url)
        try:
            with _unverified_tls(self.session.verify):
                resp = self.session.get(url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise DiscoveryError("fetching %s failed: %s" % (url, exc))
        return resp.content

    def _load_descriptor(self, name):
        data = self._get("/" + name)
        try:
            root = etree.fromstring(data)
        except etree.XMLSyntaxError as exc:
            raise DiscoveryError("decoding %s failed: %s" % (name, exc))
        node = root.find("device", namespaces=root.nsmap)
        if node is not None:
            self.device.read(node)

    def _fill_services(self, device):
        for service in device.services:
            data = self._get(service.scpd_url)
            try:
                service.read_scpd(data)
            except etree.XMLSyntaxError as exc:
                raise DiscoveryError("decoding %s failed: %s" % (service.scpd_url, exc))
            self._log.debug(
                "Service %r at %r: %d actions", service.service_type,
                service.control_url, len(service.actions))
            self.services[service.service_type] = service
        for sub in device.devices:
            self._fill_services(sub)

    def load_services(self):
        """
        Read both descriptor documents and the SCPD of every service found in
        them. Raises DiscoveryError if anything can't be fetched or decoded.
        """
        for name in (IGD_DESCRIPTOR, TR64_DESCRIPTOR):
            self._load_descriptor(name)
        self.services = {}
        self._fill_services(self.device)

    def find_service(self, service_type):
        try:
            return self.services[service_type]
        except KeyError:
            raise ResolutionError("service %s not found" % service_type)

    def find_action(self, service_type, action_name):
        action = self.find_service(service_type).find_action(action_name)
        if action is None:
            raise InvalidActionException(
                "action %s not found in service %s" % (action_name, service_type))
        return action

    def call(self, action, argument=None):
        """
        Invoke `action` with at most one (name, value) argument and return the
        converted out values keyed by state variable name.
        """
        service = action.service
        soap_client = SOAP(
            self.session,
            self.base_url + service.control_url,
            service.control_url,
            service.service_type,
            auth=self.auth,
            timeout=self.timeout,
        )
        self._log.debug(">> %s (%s)", action.name, argument)
        with _unverified_tls(self.session.verify):
            resp = soap_client.call(action.name, argument)
        try:
            result = parse_response(action, resp.iter_content(CHUNK_SIZE))
        finally:
            resp.close()
        self._log.debug("<< %s (%s): %s", action.name, argument, result)
        return result

    def _get_action_result(self, cache, service_type, action_name, argument=None):
        key = cache_key(service_type, action_name, argument)
        if key not in cache:
            action = self.find_action(service_type, action_name)
            cache[key] = self.call(action, argument)
        return cache[key]

    def _provider_value(self, cache, metric):
        arg = metric.action_argument
        try:
            provider_result = self._get_action_result(cache, metric.service, arg.provider_action)
        except CALL_ERRORS as exc:
            raise ResolutionError(
                "Error getting provider action %s result for %s.%s: %s"
                % (arg.provider_action, metric.service, metric.action, exc))
        # For provider actions the value names the field of the provider result.
        if arg.value not in provider_result:
            raise ResolutionError(
                "provider action %s for %s.%s has no result %s: %s"
                % (arg.provider_action, metric.service, metric.action, arg.value, provider_result))
        return provider_result[arg.value]

    def _fail(self, result, exc):
        result.errors.append(exc)
        _record_error(self._log, "%s: %s", result.metric.name, exc)

    def _request(self, cache, metric):
        result = MetricResult(metric)
        arg = metric.action_argument
        try:
            if arg is None:
                result.records.append(
                    self._get_action_result(cache, metric.service, metric.action))
                return result

            value = arg.value
            if arg.provider_action:
                value = self._provider_value(cache, metric)

            if not arg.is_index:
                result.records.append(self._get_action_result(
                    cache, metric.service, metric.action, (arg.name, value)))
                return result

            for index in range(_to_count(value)):
                try:
                    result.records.append(self._get_action_result(
                        cache, metric.service, metric.action, (arg.name, index)))
                except CALL_ERRORS as exc:
                    self._fail(result, exc)
        except CALL_ERRORS as exc:
            self._fail(result, exc)
        return result

    def collect(self, metrics):
        # Results only live for this pass.
        cache = {}
        return [self._request(cache, metric) for metric in metrics]

    def collect_all(self):
        """
        Call every get-only action of every discovered service. Returns one
        entry per action; actions that need arguments or fail carry an
        "error" result instead.
        """
        entries = []
        for service_type in sorted(self.services):
            service = self.services[service_type]
            self._log.info("collecting service '%s' (Url: %s)...", service_type, service.control_url)
            for action in sorted(service.actions, key=lambda a: a.name):
                if not action.is_get_only:
                    result = {"error": "... not calling since arguments required or no output"}
                else:
                    try:
                        result = self.call(action)
                    except CALL_ERRORS as exc:
                        result = {"error": "FAILED:%s" % exc}
                entries.append(dict(
                    service=service_type,
                    action=action.name,
                    arguments=[arg.as_dict() for arg in action.arguments],
                    result=result,
                ))
        return entries


def _to_count(value):
    if isinstance(value, bool):
        raise ResolutionError("invalid entry count: %r" % (value,))
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        raise ResolutionError("invalid entry count: %r" % (value,))
