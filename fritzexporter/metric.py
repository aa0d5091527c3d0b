"""
The metric catalog: what to poll, where to find the value in the result and
which labels to attach. Built from the JSON metric files.
"""
import json
import re

from .const import DEFAULT_RESULT_KEY

VALUE_TYPES = ("CounterValue", "GaugeValue", "UntypedValue")


class PromDesc(object):
    def __init__(self, fq_name, help="", var_labels=None, fixed_labels=None):
        self.fq_name = fq_name
        self.help = help
        self.var_labels = list(var_labels or [])
        self.fixed_labels = dict(fixed_labels or {})

    def __repr__(self):
        return "<PromDesc '%s'>" % self.fq_name

    @classmethod
    def from_dict(cls, data):
        return cls(
            data["fqName"],
            data.get("help", ""),
            data.get("varLabels"),
            data.get("fixedLabels"),
        )


class ActionArgument(object):
    """
    The single argument passed to a metric's action. With `provider_action`
    set, `value` names the field of the provider's result to use; with
    `is_index` set, that value is a count and the action is called once per
    index below it.
    """

    def __init__(self, name, is_index=False, provider_action="", value=""):
        self.name = name
        self.is_index = is_index
        self.provider_action = provider_action
        self.value = value

    def __repr__(self):
        return "<ActionArgument '%s'>" % self.name

    @classmethod
    def from_dict(cls, data):
        return cls(
            data["Name"],
            bool(data.get("IsIndex", False)),
            data.get("ProviderAction", ""),
            data.get("Value", ""),
        )


class Metric(object):
    def __init__(
        self,
        prom_desc,
        prom_type="",
        result_key="",
        ok_value="",
        result_path="",
        page="",
        service="",
        action="",
        action_argument=None,
    ):
        self.prom_desc = prom_desc
        self.prom_type = prom_type
        self.result_key = result_key
        self.ok_value = ok_value
        self.result_path = result_path
        self.page = page
        self.service = service
        self.action = action
        self.action_argument = action_argument

    def __repr__(self):
        return "<Metric '%s'>" % self.prom_desc.fq_name

    @property
    def name(self):
        return self.prom_desc.fq_name

    @property
    def value_type(self):
        if self.prom_type in VALUE_TYPES:
            return self.prom_type
        return "UntypedValue"

    @property
    def key(self):
        return self.result_key or DEFAULT_RESULT_KEY

    @classmethod
    def from_dict(cls, data):
        action_argument = data.get("actionArgument")
        return cls(
            PromDesc.from_dict(data["promDesc"]),
            prom_type=data.get("promType", ""),
            result_key=data.get("resultKey", ""),
            ok_value=data.get("okValue", ""),
            result_path=data.get("resultPath", ""),
            page=data.get("page", ""),
            service=data.get("service", ""),
            action=data.get("action", ""),
            action_argument=(
                ActionArgument.from_dict(action_argument) if action_argument else None
            ),
        )


class LabelRename(object):
    """
    Replaces any label value matching `match_regex` with `rename_label`.
    """

    def __init__(self, match_regex, rename_label):
        self.match_regex = match_regex
        self.rename_label = rename_label
        try:
            self.pattern = re.compile(match_regex)
        except re.error as exc:
            raise ValueError("Error compiling regex %r: %s" % (match_regex, exc))

    def __repr__(self):
        return "<LabelRename %r -> %r>" % (self.match_regex, self.rename_label)

    def apply(self, value):
        if self.pattern.search(value):
            return self.rename_label
        return value

    @classmethod
    def from_dict(cls, data):
        return cls(data["matchRegex"], data["renameLabel"])


class MetricsFile(object):
    def __init__(self, metrics=None, label_renames=None):
        self.metrics = list(metrics or [])
        self.label_renames = list(label_renames or [])

    @classmethod
    def from_dict(cls, data):
        return cls(
            [Metric.from_dict(m) for m in data.get("metrics") or []],
            [LabelRename.from_dict(r) for r in data.get("labelRenames") or []],
        )

    @classmethod
    def load(cls, path):
        try:
            with open(path) as in_f:
                data = json.load(in_f)
        except (OSError, ValueError) as exc:
            raise ValueError("error reading metric file %s: %s" % (path, exc))
        return cls.from_dict(data)


class MetricResult(object):
    """
    What one collection pass produced for one metric: the raw result records
    and the errors met on the way.
    """

    def __init__(self, metric, records=None, errors=None):
        self.metric = metric
        self.records = list(records or [])
        self.errors = list(errors or [])

    def __repr__(self):
        return "<MetricResult '%s' records=%d errors=%d>" % (
            self.metric.name, len(self.records), len(self.errors))

    @property
    def ok(self):
        return not self.errors


class Exporter(object):
    """
    A protocol backend able to poll the gateway for a list of metrics.
    """

    def collect(self, metrics):
        """
        Run one collection pass. Returns a list of MetricResult, one per
        metric, in the order given.
        """
        raise NotImplementedError
