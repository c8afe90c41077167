"""Evaluation of expressions over values extracted from a document."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any

from .doctypes import DocType, VarType
from .expression import Expression, ExpressionError
from .extract import (
    ExtractError,
    Extractor,
    HTMLExtractor,
    JSONExtractor,
    RegexExtractor,
    XMLExtractor,
    parse_duration,
)

log = logging.getLogger(__name__)

_EXTRACTORS = {
    DocType.HTML: HTMLExtractor,
    DocType.XML: XMLExtractor,
    DocType.JSON: JSONExtractor,
    DocType.TEXT: RegexExtractor,
}


@dataclass
class Variable:
    """A named value pulled from the document by a query."""

    name: str
    type: VarType
    query: str
    value: Any = None


def _text_arg(args) -> str:
    if not args or not isinstance(args[0], str):
        raise ExpressionError("expected a string argument")
    return args[0]


class Evaluator:
    """Extracts variables from a document and evaluates an expression."""

    def __init__(self, document="", doc_type=DocType.UNSUPPORTED, expression=""):
        self.variables: list[Variable] = []
        self.doc_type = doc_type
        self.expression = expression
        self.document = document
        self.extractor: Extractor | None = None
        self.eval_funcs: dict = {}
        self.extracted_values: dict = {}
        self.config()

    def config(self):
        """Set up the extractor and the expression functions."""
        self._config_extractor()
        self._config_functions()

    def _config_extractor(self):
        self.extracted_values = {}
        factory = _EXTRACTORS.get(self.doc_type)
        if factory is None:
            self.extractor = None
            log.error("Unsupported document type: %s", self.doc_type)
        else:
            self.extractor = factory(self.document)

    def _pull(self, var_type, args):
        variable = Variable(name="", type=var_type, query=_text_arg(args))
        self.extract_value(variable)
        return variable.value

    def _config_functions(self):
        def duration(*args):
            return parse_duration(_text_arg(args))

        self.eval_funcs = {
            "x_str": lambda *a: self._pull(VarType.STRING, a),
            "x_float": lambda *a: self._pull(VarType.FLOAT, a),
            "x_int": lambda *a: float(self._pull(VarType.INT, a)),
            "x_bool": lambda *a: self._pull(VarType.BOOL, a),
            "x_time": lambda *a: float(self._pull(VarType.TIME, a)),
            "x_duration": lambda *a: self._pull(VarType.DURATION, a),
            "strlen": lambda *a: float(len(_text_arg(a).encode("utf-8"))),
            "now": lambda *a: float(int(time.time())),
            "duration": duration,
        }

    def set_document(self, doc_type, document):
        """Replace the document, switching extractor if the type changes."""
        self.document = document
        if self.doc_type != doc_type or self.extractor is None:
            self.doc_type = doc_type
            self._config_extractor()
        else:
            self.extractor.document = document

    def add_variable(self, variable):
        """Add a variable to extract before evaluating."""
        self.variables.append(variable)

    def clean_variable(self):
        """Remove all variables."""
        self.variables = []

    def evaluate(self):
        """Extract the variables and return the expression's truth."""
        self.extract()
        expression = Expression(self.expression, self.eval_funcs)
        result = expression.evaluate({v.name: v.value for v in self.variables})
        if isinstance(result, bool):
            return result
        if isinstance(result, float):
            return result != 0
        if isinstance(result, str):
            return result != ""
        raise ExpressionError(f"Unsupported type: {type(result).__name__}")

    def extract(self):
        """Extract the value of every variable."""
        for variable in self.variables:
            self.extract_value(variable)

    def extract_value(self, variable):
        """Extract one variable's value from the document."""
        if self.doc_type == DocType.UNSUPPORTED or self.extractor is None:
            raise ExtractError(f"Unsupported document type: {self.doc_type}")
        self.extractor.query = variable.query
        self.extractor.var_type = variable.type
        value = self.extractor.extract()
        if variable.type == VarType.TIME:
            value = int(value.timestamp())
        variable.value = value
        self.extracted_values[variable.query] = value
        return value