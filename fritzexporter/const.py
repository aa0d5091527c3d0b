HTTP_TIMEOUT = 10

IGD_DESCRIPTOR = "igddesc.xml"
TR64_DESCRIPTOR = "tr64desc.xml"

DEFAULT_RESULT_KEY = "result"
GATEWAY_LABEL = "gateway"

TEXT_XML = 'text/xml; charset="utf-8"'
SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_ENCODING = "http://schemas.xmlsoap.org/soap/encoding/"

LUA_LOGIN_PATH = "/login_sid.lua"
LUA_DATA_PATH = "/data.lua"
LUA_INVALID_SID = "0000000000000000"

DEFAULT_UPNP_URL = "http://fritz.box:49000"
DEFAULT_LUA_URL = "http://fritz.box"
DEFAULT_LISTEN_ADDRESS = "127.0.0.1:9042"
