"""
Command line entry point. Every flag falls back to an environment variable
named after it (--gateway-upnp-url -> GATEWAY_UPNP_URL).
"""
import argparse
import json
import logging
import os
import sys
import time

from prometheus_client import REGISTRY, start_http_server
from requests.compat import urlparse

from .collector import new_lua_collector, new_upnp_collector
from .const import DEFAULT_LISTEN_ADDRESS, DEFAULT_LUA_URL, DEFAULT_UPNP_URL
from .errors import UPNPError
from .metric import MetricsFile
from .upnp import UPnPExporter
from .util import _getLogger


def _env(name, default=None):
    return os.environ.get(name, default)


def _env_flag(name):
    return _env(name, "").lower() in ("1", "true", "yes")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Prometheus exporter for FRITZ!Box gateways")
    parser.add_argument(
        "--gateway-upnp-url", default=_env("GATEWAY_UPNP_URL", DEFAULT_UPNP_URL),
        help="The URL of the FRITZ!Box - UPNP")
    parser.add_argument(
        "--gateway-lua-url", default=_env("GATEWAY_LUA_URL", DEFAULT_LUA_URL),
        help="The URL of the FRITZ!Box - LUA")
    parser.add_argument(
        "--username", default=_env("USERNAME", ""),
        help="The user for the FRITZ!Box UPnP service")
    parser.add_argument(
        "--password", default=_env("PASSWORD", ""),
        help="The password for the FRITZ!Box UPnP service")
    parser.add_argument(
        "--listen-address", default=_env("LISTEN_ADDRESS", DEFAULT_LISTEN_ADDRESS),
        help="The address to listen on for HTTP requests.")
    parser.add_argument(
        "--metrics-lua", default=_env("METRICS_LUA", ""),
        help="The JSON file with the lua metric definitions.")
    parser.add_argument(
        "--metrics-upnp", default=_env("METRICS_UPNP", ""),
        help="The JSON file with the upnp metric definitions.")
    parser.add_argument(
        "--test", action="store_true", default=_env_flag("TEST"),
        help="test mode: collect once and print the results")
    parser.add_argument(
        "--collect-all", action="store_true", default=_env_flag("COLLECT_ALL"),
        help="call every get-only UPnP action and dump the results as JSON")
    parser.add_argument(
        "--result-file", default=_env("RESULT_FILE", ""),
        help="file to write the --collect-all results to")
    parser.add_argument(
        "--log-level", default=_env("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def split_address(address):
    host, _, port = address.rpartition(":")
    return host, int(port)


def collect_all(args):
    exporter = UPnPExporter(args.gateway_upnp_url, args.username, args.password)
    exporter.load_services()
    dump = json.dumps(exporter.collect_all(), indent="\t")
    print(dump)
    if args.result_file:
        with open(args.result_file, "w") as out_f:
            out_f.write(dump)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    log = _getLogger("fritzexporter")

    gateway = urlparse(args.gateway_lua_url).hostname
    if gateway is None:
        log.error("invalid URL: %s", args.gateway_lua_url)
        return 1

    if args.collect_all:
        try:
            collect_all(args)
        except (UPNPError, OSError) as exc:
            log.error("%s", exc)
            return 1
        return 0

    collectors = []
    try:
        if args.metrics_lua:
            collectors.append(new_lua_collector(
                MetricsFile.load(args.metrics_lua),
                args.gateway_lua_url, args.username, args.password, gateway))
        if args.metrics_upnp:
            collectors.append(new_upnp_collector(
                MetricsFile.load(args.metrics_upnp),
                args.gateway_upnp_url, args.username, args.password, gateway))
    except (UPNPError, ValueError) as exc:
        log.error("%s", exc)
        return 1

    if args.test:
        for collector in collectors:
            collector.test()
        return 0

    for collector in collectors:
        REGISTRY.register(collector)

    host, port = split_address(args.listen_address)
    start_http_server(port, addr=host)
    log.info("metrics available at http://%s/metrics", args.listen_address)
    while True:
        time.sleep(3600)


if __name__ == "__main__":
    sys.exit(main())
