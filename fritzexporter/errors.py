class UPNPError(Exception):
    """
    Exception class for UPnP errors.
    """

    pass


class DiscoveryError(UPNPError):
    """
    Fetching or decoding a device descriptor or service SCPD failed.
    """

    pass


class AuthError(UPNPError):
    """
    Digest authentication could not be negotiated.
    """

    pass


class UnexpectedResponse(UPNPError):
    """
    Got a response we didn't expect.
    """

    pass


class UnknownDatatype(UnexpectedResponse):
    """
    A state variable declares a data type we cannot convert.
    """

    def __init__(self, datatype, value):
        super(UnknownDatatype, self).__init__(
            "unknown datatype: %s (%s)" % (datatype, value)
        )
        self.datatype = datatype
        self.value = value


class SOAPError(UnexpectedResponse):
    """
    The device answered an action call with a SOAP Fault.
    """

    def __init__(self, fault_string, error_code=None, error_description=None):
        if error_code is not None:
            msg = "SOAPFault: %s %s (%s)" % (fault_string, error_code, error_description)
        else:
            msg = "SOAPFault: %s" % fault_string
        super(SOAPError, self).__init__(msg)
        self.fault_string = fault_string
        self.error_code = error_code
        self.error_description = error_description


class ResolutionError(UPNPError):
    """
    A metric references a service, action or result field that isn't there.
    """

    pass


class InvalidActionException(ResolutionError):
    """
    Action doesn't exist.
    """

    pass


class ExtractionError(Exception):
    """
    A result record can't be turned into a value and label set.
    """

    pass


class LuaError(Exception):
    """
    Session login or data request against the Lua endpoint failed.
    """

    pass


class ErrorCodeDescriptions(object):
    """
    UPnP action error codes, as listed in the UPnP Device Architecture, with
    the reserved ranges resolved to their generic meaning.
    """

    _descriptions = {
        401: "Invalid Action",
        402: "Invalid Args",
        404: "Invalid Var",
        501: "Action Failed",
        600: "Argument Value Invalid",
        601: "Argument Value Out of Range",
        602: "Optional Action Not Implemented",
        603: "Out of Memory",
        604: "Human Intervention Required",
        605: "String Argument Too Long",
        714: "No such entry in array",
        820: "Internal error",
    }

    def __getitem__(self, key):
        if not isinstance(key, int):
            raise KeyError("'key' must be an integer")
        if 606 <= key <= 612:
            return "These ErrorCodes are reserved for UPnP DeviceSecurity."
        if key in self._descriptions:
            return self._descriptions[key]
        if 613 <= key <= 699:
            return "Common action errors. Defined by UPnP Forum Technical Committee."
        if 700 <= key <= 799:
            return "Action-specific errors defined by UPnP Forum working committee."
        if 800 <= key <= 899:
            return "Action-specific errors for non-standard actions. Defined by UPnP vendor."
        raise KeyError("Unknown error code %r" % key)

    def get(self, key, default=None):
        try:
            return self[key]
        except KeyError:
            return default


ERR_CODE_DESCRIPTIONS = ErrorCodeDescriptions()
