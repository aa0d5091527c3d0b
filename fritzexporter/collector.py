import threading
from collections import OrderedDict

import requests
from prometheus_client.core import (
    CounterMetricFamily, GaugeMetricFamily, UnknownMetricFamily)

from .errors import LuaError, UPNPError
from .extract import extract
from .lua import LuaExporter
from .upnp import UPnPExporter
from .util import _getLogger, _record_error

FAMILY_CLASSES = {
    "CounterValue": CounterMetricFamily,
    "GaugeValue": GaugeMetricFamily,
    "UntypedValue": UnknownMetricFamily,
}

PASS_ERRORS = (UPNPError, LuaError, requests.RequestException)


def label_names(metric):
    names = [name.lower() for name in metric.prom_desc.var_labels]
    return names + [name.lower() for name in metric.prom_desc.fixed_labels]


class Collector(object):
    """
    Prometheus collector for one backend. Every scrape runs one collection
    pass; scrapes are serialized since the exporter keeps per-pass and auth
    state.
    """

    def __init__(self, exporter, metrics, label_renames, gateway):
        self.exporter = exporter
        self.metrics = list(metrics)
        self.label_renames = list(label_renames)
        self.gateway = gateway
        self._lock = threading.Lock()
        self._log = _getLogger("Collector")
        # Fail early on metrics sharing a name with different labels.
        self._new_families()

    def __repr__(self):
        return "<Collector %r>" % (self.exporter,)

    def _new_families(self):
        families = OrderedDict()
        declared = {}
        for metric in self.metrics:
            names = label_names(metric)
            if metric.name not in families:
                family_class = FAMILY_CLASSES[metric.value_type]
                families[metric.name] = family_class(
                    metric.name, metric.prom_desc.help, labels=names)
                declared[metric.name] = names
            elif declared[metric.name] != names:
                raise ValueError(
                    "metric %s declared with labels %s and %s"
                    % (metric.name, declared[metric.name], names))
        return families

    def run(self):
        """
        Run one collection pass and extract it. Returns a list of
        (MetricResult, samples) pairs; empty if the pass failed as a whole.
        """
        with self._lock:
            try:
                results = self.exporter.collect(self.metrics)
            except PASS_ERRORS as exc:
                _record_error(self._log, "Error: %s", exc)
                return []
        return [
            (result, extract(result.metric, result.records, self.gateway, self.label_renames))
            for result in results
        ]

    def describe(self):
        return list(self._new_families().values())

    def collect(self):
        families = self._new_families()
        for result, samples in self.run():
            metric = result.metric
            fixed_values = list(metric.prom_desc.fixed_labels.values())
            family = families[metric.name]
            for sample in samples:
                family.add_metric(sample.label_values + fixed_values, sample.value)
        for family in families.values():
            yield family

    def test(self):
        """
        Run one pass and print what it produced.
        """
        for result, samples in self.run():
            metric = result.metric
            print("Metric: %s" % metric.name)
            print(" - Exporter Result: %s" % result.records)
            for error in result.errors:
                print(" - Error: %s" % error)
            for sample in samples:
                print("   - prom metric type: %s" % metric.value_type)
                print("     - prom metric value: %s" % sample.value)
                print("     - prom label values: %s" % sample.label_values)


def new_upnp_collector(metrics_file, url, username, password, gateway):
    """
    Discover the gateway's services and build a collector over them. Raises
    DiscoveryError if discovery fails.
    """
    exporter = UPnPExporter(url, username, password)
    exporter.load_services()
    return Collector(exporter, metrics_file.metrics, metrics_file.label_renames, gateway)


def new_lua_collector(metrics_file, url, username, password, gateway):
    exporter = LuaExporter(url, username, password)
    return Collector(exporter, metrics_file.metrics, metrics_file.label_renames, gateway)
