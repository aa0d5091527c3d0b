# Copyright (c) 2012-2016, Ferry Boender <ferry.boender@gmail.com>
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.


# Todo:
#  - dateTime and uuid values are passed through as strings.
#  - Only one argument per action call is supported.

"""
This module provides a Prometheus exporter for FRITZ!Box home gateways. It
polls the gateway over two protocols: TR-064 (UPnP SOAP actions, Digest
authenticated) and the web UI's Lua JSON pages (session authenticated).

The usual flow for a UPnP poll is:

- Discover services using the descriptor documents.

  The gateway serves igddesc.xml and tr64desc.xml. Both are read into one
  Device tree; every Service found in it is indexed by its service type.

- Inspect Services capabilities using SCPD.

  For each Service, a separate XML file lists the actions it supports, their
  arguments and the typed state variables those arguments are bound to.

- Resolve metrics to action calls.

  Each configured Metric names a service, an action and optionally a single
  argument. The argument is a literal, a field of another ("provider")
  action's result, or a count of entries to call the action for by index.
  Results are cached for the duration of one pass, so metrics sharing a call
  cost one request.

- Call an Action using SOAP.

  The request is POSTed to the service's control URL. A 401 challenge is
  answered with HTTP Digest authentication and the header is reused for the
  calls that follow. The response values are converted according to the
  state variable data types.

- Extract values and labels.

  Each result record gives one sample: the configured result key coerced to a
  float, plus label values read from the record, renamed by the configured
  rules and lowercased.

Classes:

* UPnPExporter: TR-064 discovery, action calls and metric resolution.
* LuaExporter: session login and data.lua page requests.
* Collector: runs a pass of either exporter per Prometheus scrape.
* Device, Service, Action, Argument, StateVariable: the discovered model.
* MetricsFile, Metric, LabelRename: the metric catalog.

Example:

------------------------------------------------------------------------------
import fritzexporter

exporter = fritzexporter.UPnPExporter("http://fritz.box:49000", "user", "secret")
exporter.load_services()

metrics = fritzexporter.MetricsFile.load("metrics-upnp.json")
for result in exporter.collect(metrics.metrics):
    print(result.metric.name, result.records, result.errors)
------------------------------------------------------------------------------
"""
from fritzexporter import auth, const, errors, extract, lua, marshal, metric, soap, upnp, util  # noqa: F401
from .collector import Collector, new_lua_collector, new_upnp_collector
from .errors import (
    UPNPError, AuthError, DiscoveryError, ExtractionError, InvalidActionException, LuaError,
    ResolutionError, SOAPError, UnexpectedResponse, UnknownDatatype)
from .lua import LuaExporter
from .metric import ActionArgument, LabelRename, Metric, MetricResult, MetricsFile, PromDesc
from .upnp import Action, Argument, Device, Service, StateVariable, UPnPExporter

__all__ = [
    "Action", "ActionArgument", "Argument", "AuthError", "Collector", "Device", "DiscoveryError",
    "ExtractionError", "InvalidActionException", "LabelRename", "LuaError", "LuaExporter",
    "Metric", "MetricResult", "MetricsFile", "PromDesc", "ResolutionError", "Service",
    "SOAPError", "StateVariable", "UnexpectedResponse", "UnknownDatatype", "UPNPError",
    "UPnPExporter", "new_lua_collector", "new_upnp_collector",
]
