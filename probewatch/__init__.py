"""Health-check building blocks: document value extraction, expression evaluation, PID files, log settings, YAML config merging and notification channels."""

__version__ = "0.1.0"