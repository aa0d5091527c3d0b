"""
Turns raw result records, from either backend, into (value, label values)
samples ready for exposition.
"""
from numbers import Number

from .const import GATEWAY_LABEL
from .errors import ExtractionError
from .util import _getLogger, _record_error

_log = _getLogger("extract")


class Sample(object):
    def __init__(self, value, label_values):
        self.value = value
        self.label_values = label_values

    def __repr__(self):
        return "<Sample %s %r>" % (self.value, self.label_values)

    def __eq__(self, other):
        return (
            isinstance(other, Sample)
            and (self.value, self.label_values) == (other.value, other.label_values)
        )


def get_result_value(record, key, ok_value):
    """
    Coerce the record's `key` field to a float. Booleans count as 1/0 and
    strings as 1 when they equal `ok_value`, 0 otherwise.
    """
    value = record.get(key)
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, Number):
        return float(value)
    if isinstance(value, str):
        return 1.0 if value == ok_value else 0.0
    raise ExtractionError(
        "%s in %s - unknown type: %s" % (key, record, type(value).__name__))


def rename_label(value, label_renames):
    # Every matching rule applies, so the last match wins.
    for rename in label_renames:
        value = rename.apply(value)
    return value


def get_label_values(label_names, record, gateway, label_renames):
    label_values = []
    for label_name in label_names:
        if label_name == GATEWAY_LABEL:
            value = gateway
        else:
            value = record.get(label_name)
            if not isinstance(value, str):
                raise ExtractionError(
                    "label %s in %s is not a string: %r" % (label_name, record, value))
        label_values.append(rename_label(value, label_renames).lower())
    return label_values


def extract(metric, records, gateway, label_renames):
    """
    Build the samples for one metric. A record that can't be converted is
    logged, counted and left out.
    """
    samples = []
    for record in records:
        try:
            label_values = get_label_values(
                metric.prom_desc.var_labels, record, gateway, label_renames)
            value = get_result_value(record, metric.key, metric.ok_value)
        except ExtractionError as exc:
            _record_error(_log, "%s: %s", metric.name, exc)
            continue
        samples.append(Sample(value, label_values))
    return samples
