"""Extraction of typed values from HTML, XML, JSON and plain-text documents."""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone, tzinfo
from fractions import Fraction

from lxml import etree
from lxml import html as lxml_html

from .doctypes import VarType


class ExtractError(ValueError):
    """A value could not be extracted from a document."""


# ---------------------------------------------------------------------------
# Conversions


_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MAX = 2**63 - 1


def _parse_int(text: str) -> int:
    if not _INT_RE.fullmatch(text):
        raise ValueError(f"invalid integer: {text!r}")
    value = int(text)
    if not -_INT64_MAX - 1 <= value <= _INT64_MAX:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def _parse_float(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        raise ValueError(f"invalid float: {text!r}")
    try:
        value = float(text)
    except ValueError:
        try:
            value = float.fromhex(text)
        except ValueError:
            raise ValueError(f"invalid float: {text!r}") from None
    if value in (float("inf"), float("-inf")) and "inf" not in text.lower():
        raise ValueError(f"float out of range: {text!r}")
    return value


_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(text):
    """Parse a boolean written as 1/0, t/f or true/false."""
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise ValueError(f"invalid boolean: {text!r}")


_DURATION_UNITS = {
    "ns": 1,
    "us": 10**3,
    "\u00b5s": 10**3,
    "\u03bcs": 10**3,
    "ms": 10**6,
    "s": 10**9,
    "m": 60 * 10**9,
    "h": 3600 * 10**9,
}
_DURATION_PART = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|\u00b5s|\u03bcs|ms|s|m|h)")


def parse_duration(text):
    """Parse a duration such as ``1h30m`` or ``-1.5s``.

    The result is a timedelta, so it is precise to the microsecond.
    """
    rest = text
    sign = 1
    if rest[:1] in ("+", "-"):
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration: {text!r}")
    total = Fraction(0)
    pos = 0
    while pos < len(rest):
        match = _DURATION_PART.match(rest, pos)
        if match is None:
            raise ValueError(f"invalid duration: {text!r}")
        number, unit = match.groups()
        total += Fraction(number.rstrip(".") or "0") * _DURATION_UNITS[unit]
        pos = match.end()
    nanoseconds = sign * int(total)
    if not -_INT64_MAX - 1 <= nanoseconds <= _INT64_MAX:
        raise ValueError(f"invalid duration: {text!r}")
    seconds, rest_ns = divmod(nanoseconds, 10**9)
    return timedelta(seconds=seconds, microseconds=rest_ns / 1000)


_WEEKDAYS = r"(?P<wd>Mon|Tue|Wed|Thu|Fri|Sat|Sun)"
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_MONTH_NAME = r"(?P<mon>" + "|".join(_MONTHS) + ")"
_DATE = r"(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
_CLOCK = r"(?P<hour>\d{1,2}):(?P<minute>\d{2}):(?P<second>\d{2})(?P<frac>\.\d+)?"

_TIME_PATTERNS = [
    re.compile(p)
    for p in (
        # ANSIC
        rf"{_WEEKDAYS} {_MONTH_NAME} {{1,2}}(?P<day>\d{{1,2}}) {_CLOCK} (?P<year>\d{{4}})",
        # Unix date
        rf"{_WEEKDAYS} {_MONTH_NAME} {{1,2}}(?P<day>\d{{1,2}}) {_CLOCK} "
        rf"(?P<zone>[A-Z]{{3,5}}) (?P<year>\d{{4}})",
        # Ruby date
        rf"{_WEEKDAYS} {_MONTH_NAME} (?P<day>\d{{2}}) {_CLOCK} "
        rf"(?P<tz>[+-]\d{{4}}) (?P<year>\d{{4}})",
        # Kitchen
        r"(?P<hour>\d{1,2}):(?P<minute>\d{2})(?P<ampm>AM|PM)",
        # RFC 3339, with or without fractional seconds
        rf"{_DATE}T{_CLOCK}(?P<tz>Z|[+-]\d{{2}}:\d{{2}})",
        _DATE,
        rf"{_DATE} (?P<hour>\d{{1,2}}):(?P<minute>\d{{2}})",
        rf"{_DATE} {_CLOCK}",
        rf"{_DATE} {_CLOCK}(?P<tz>[+-]\d{{2}}:\d{{2}})",
        # ISO 8601 with hour, minutes, seconds and fractions
        rf"{_DATE}T(?P<hour>\d{{1,2}})(?P<tz>Z|[+-]\d{{4}})",
        rf"{_DATE}T(?P<hour>\d{{1,2}}):(?P<minute>\d{{2}})(?P<tz>Z|[+-]\d{{4}})",
        rf"{_DATE}T{_CLOCK}(?P<tz>Z|[+-]\d{{4}})",
    )
]


def _as_local(moment: datetime) -> datetime:
    try:
        return moment.astimezone()
    except (OverflowError, OSError, ValueError):
        return moment.replace(tzinfo=datetime.now().astimezone().tzinfo)


def _offset_zone(text: str) -> tzinfo:
    if text == "Z":
        return timezone.utc
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    hours, minutes = int(digits[:2]), int(digits[2:])
    if minutes >= 60:
        raise ValueError(f"invalid time zone offset: {text!r}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def _named_zone(abbr: str) -> tzinfo:
    if abbr in ("UTC", "GMT"):
        return timezone.utc
    local = datetime.now().astimezone()
    if abbr == local.tzname() and local.tzinfo is not None:
        return local.tzinfo
    return timezone(timedelta(0), abbr)


def _build_time(fields: dict) -> datetime:
    if fields.get("month"):
        month = int(fields["month"])
    elif fields.get("mon"):
        month = _MONTHS.index(fields["mon"]) + 1
    else:
        month = 1
    hour = int(fields.get("hour") or 0)
    ampm = fields.get("ampm")
    if ampm:
        if hour > 12:
            raise ValueError("hour out of range")
        if ampm == "PM" and hour < 12:
            hour += 12
        elif ampm == "AM" and hour == 12:
            hour = 0
    frac = fields.get("frac")
    micro = int((frac[1:] + "000000")[:6]) if frac else 0
    moment = datetime(
        int(fields.get("year") or 1),
        month,
        int(fields.get("day") or 1),
        hour,
        int(fields.get("minute") or 0),
        int(fields.get("second") or 0),
        micro,
    )
    if fields.get("tz"):
        return moment.replace(tzinfo=_offset_zone(fields["tz"]))
    if fields.get("zone"):
        return moment.replace(tzinfo=_named_zone(fields["zone"]))
    return _as_local(moment)


def try_parse_time(text):
    """Parse a time in one of the common layouts.

    Times without a zone are taken as local time; the result is always aware.
    """
    for pattern in _TIME_PATTERNS:
        match = pattern.fullmatch(text)
        if match is None:
            continue
        try:
            return _build_time(match.groupdict())
        except ValueError:
            continue
    raise ValueError(f"Cannot parse the time: {text}")


_CONVERTERS = {
    VarType.STRING: str,
    VarType.INT: _parse_int,
    VarType.FLOAT: _parse_float,
    VarType.BOOL: parse_bool,
    VarType.TIME: try_parse_time,
    VarType.DURATION: parse_duration,
}


# ---------------------------------------------------------------------------
# Extractors


class Extractor(ABC):
    """Pulls a string out of a document with a query and converts it."""

    def __init__(self, document="", query="", var_type=VarType.STRING):
        self.document = document
        self.query = query
        self.var_type = var_type
        self.name = ""

    @abstractmethod
    def extract_str(self):
        """Return the raw string the query selects."""

    def extract(self):
        """Return the selected value converted to ``var_type``."""
        converter = _CONVERTERS.get(self.var_type)
        if converter is None:
            raise ExtractError(f"unknown type: {self.var_type}")
        text = self.extract_str()
        try:
            return converter(text)
        except ValueError as err:
            raise ExtractError(str(err)) from err


def _format_number(value: float) -> str:
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def _inner_text(result) -> str:
    if isinstance(result, list):
        if not result:
            return ""
        result = result[0]
    if isinstance(result, etree._Element):
        return str(result.xpath("string()"))
    if isinstance(result, bool):
        return "true" if result else "false"
    if isinstance(result, float):
        return _format_number(result)
    return str(result)


class _XPathExtractor(Extractor):
    """Extractor whose query is an XPath expression over a parsed tree."""

    @abstractmethod
    def _parse(self, document: str):
        """Return an object with an ``xpath`` method for the document."""

    def extract_str(self):
        try:
            tree = self._parse(self.document)
        except (etree.LxmlError, ValueError) as err:
            raise ExtractError(f"cannot parse the document: {err}") from err
        try:
            result = tree.xpath(self.query)
        except etree.XPathError as err:
            raise ExtractError(f"invalid xpath {self.query!r}: {err}") from err
        return _inner_text(result)


class HTMLExtractor(_XPathExtractor):
    """Extracts values from an HTML document by XPath."""

    def _parse(self, document):
        if not document.strip():
            document = "<html></html>"
        return lxml_html.document_fromstring(document).getroottree()


class XMLExtractor(_XPathExtractor):
    """Extracts values from an XML document by XPath."""

    def _parse(self, document):
        parser = etree.XMLParser(resolve_entities=False, no_network=True)
        return etree.fromstring(document.strip().encode("utf-8"), parser).getroottree()


def _json_scalar(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_number(value)
    return str(value)


def _json_child(parent, key: str):
    try:
        return etree.SubElement(parent, key)
    except ValueError:
        child = etree.SubElement(parent, "node")
        child.set("name", key)
        return child


def _build_json(parent, value) -> None:
    if isinstance(value, dict):
        for key in sorted(value):
            _build_json(_json_child(parent, key), value[key])
    elif isinstance(value, list):
        for item in value:
            _build_json(etree.SubElement(parent, "element"), item)
    else:
        parent.text = _json_scalar(value)


class JSONExtractor(_XPathExtractor):
    """Extracts values from a JSON document by XPath.

    Object keys become elements in sorted order; array items become
    anonymous child elements.
    """

    def _parse(self, document):
        data = json.loads(document)
        root = etree.Element("root")
        _build_json(root, data)
        return root


class RegexExtractor(Extractor):
    """Extracts values from plain text by regular expression.

    The first capture group is returned when there is one, the whole match
    otherwise; a named first group sets ``name``.
    """

    def extract_str(self):
        try:
            pattern = re.compile(self.query)
        except re.error as err:
            raise ExtractError(f"invalid regex {self.query!r}: {err}") from err
        match = pattern.search(self.document)
        if match is None:
            raise ExtractError(f"no match found for - {self.query}")
        if pattern.groups:
            group_name = next(
                (name for name, index in pattern.groupindex.items() if index == 1), None
            )
            if group_name:
                self.name = group_name
            return match.group(1) or ""
        return match.group(0)