from artifactsfleet.helpers.factory import create_record, parse_record
from artifactsfleet.helpers.logging import DECISION, DecisionLogger, JsonLinesFormatter

__all__ = [
    "DECISION",
    "DecisionLogger",
    "JsonLinesFormatter",
    "create_record",
    "parse_record",
]
