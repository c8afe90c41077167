# probewatch

Building blocks for a service health-checking tool:

- `probewatch.doctypes` – the `DocType` (`html`, `xml`, `json`, `text`,
  `unsupported`) and `VarType` (`int`, `float`, `string`, `bool`, `time`,
  `duration`, `unknown`) enumerations, readable from and writable to YAML.
- `probewatch.extract` – `HTMLExtractor`, `XMLExtractor` and `JSONExtractor`
  take XPath queries; `RegexExtractor` takes a regular expression and returns
  its first capture group (or the whole match). Values are converted to the
  chosen `VarType`; failures raise `ExtractError`. Also `try_parse_time`,
  `parse_duration` (`"1h30m"`, `"500ms"`) and `parse_bool`.
- `probewatch.expression` – a small expression language (`Expression`,
  `ExpressionError`) with `?:`, `||`, `&&`, `== != < <= > >= =~ !~`,
  `+ - * / % **` and the prefixes `!` and `-`. Numbers are floats; a quoted
  string that reads as a time becomes its Unix timestamp.
- `probewatch.evaluator` – `Evaluator` extracts `Variable`s from a document
  and evaluates an expression over them.
- `probewatch.daemon` – PID files: `new_pid_file`, `PIDFile`, `PIDFileError`,
  `process_exists`.
- `probewatch.logconf` – `LogLevel` and `Log`: log level, log file or
  standard output, size-based rotation with backups and gzip compression.
- `probewatch.merge` – `deep_merge` and `merge_yaml_files`.
- `probewatch.channel` and `probewatch.manager` – channels that route probe
  results to notifiers.

## Installation

```
pip install probewatch
```

## Checking a document

```python
from probewatch.doctypes import DocType, VarType
from probewatch.evaluator import Evaluator, Variable

doc = '{"name": "Server", "mem_used": 512, "mem_total": 1024}'

ev = Evaluator(doc, DocType.JSON, "(mem_used / mem_total) < 0.8")
ev.add_variable(Variable("mem_used", VarType.INT, "//mem_used"))
ev.add_variable(Variable("mem_total", VarType.INT, "//mem_total"))
assert ev.evaluate() is True

# The same check with extraction functions inside the expression
ev = Evaluator(doc, DocType.JSON, "x_int('//mem_used') / x_int('//mem_total') < 0.8")
assert ev.evaluate() is True
```

The functions available in an expression are `x_str`, `x_int`, `x_float`,
`x_bool`, `x_time` (a Unix timestamp), `x_duration` (nanoseconds), `strlen`,
`now()` (Unix seconds) and `duration('1s')` (nanoseconds). Every value an
extraction produces is recorded in `Evaluator.extracted_values`, keyed by query.

For plain text, queries are regular expressions and the first capture group is
the value:

```python
ev = Evaluator("cpu: 0.5, live: true", DocType.TEXT,
               "x_bool('live: (?P<live>true|false)') && x_float('cpu: (?P<cpu>[0-9.]*)') < 0.6")
assert ev.evaluate() is True
```

`set_document(doc_type, document)` swaps in a new document. A failed
extraction raises `ExtractError` and a bad expression raises
`ExpressionError`, rather than returning `False`.

## Merging configuration files

```python
from probewatch.merge import merge_yaml_files

text = merge_yaml_files("conf.d")   # merges conf.d/*.yaml in name order
```

Mappings are merged key by key, lists are appended, other values are replaced
by later files. The result is YAML text; a missing directory, no `*.yaml`
files or invalid YAML raises `MergeError`.

## PID files

```python
from probewatch.daemon import new_pid_file

pid = new_pid_file("/tmp/probewatch/probewatch.pid")
try:
    ...
finally:
    pid.remove()
```

If the path is a directory, `probewatch.pid` is written inside it; a symbolic
link at the path is replaced. `PIDFile.check()` raises `PIDFileError` when the
file names a running process.

## Log settings

```python
import logging
from probewatch.logconf import Log, LogLevel

settings = Log(level=LogLevel.DEBUG, file="logs/app.log")
settings.init_log(logging.getLogger("app"))   # None configures the root logger
settings.rotate()
settings.close()
```

`LogLevel.from_yaml("warn")` and `LogLevel.WARN.to_yaml()` read and write
levels; an unknown name raises `ValueError`.

## Channels

A channel holds probers and notifiers by name. Results sent to a configured
channel are handed to its notifiers by `Channel.watch_event()`, except when a
status stays `UP` or `INIT`, or goes from `INIT` to `UP`. Each notifier's
`notify(result)` runs in its own thread, or `dry_notify(result)` runs in place
after `manager.set_dry_notify(True)`.

```python
from probewatch import manager

manager.set_probers(probers)       # each prober has name, kind and channels
manager.set_notifiers(notifiers)   # each also has notify() and dry_notify()
manager.config_all_channels()
manager.watch_for_all_events()
manager.get_channel("default").send(result)
manager.all_done()
```

## What this package does not do

There is no command-line program, no scheduler and no web server. It has no
probers of its own (HTTP, TCP, ping and the like) and no notifiers (e-mail,
chat services); channels work with whatever objects provide the attributes
described above. It does not produce or store SLA reports.

## Running the tests

```
pip install "probewatch[test]"
pytest
```