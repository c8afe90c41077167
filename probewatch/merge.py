"""Merging of a directory of YAML configuration files into one document."""

from __future__ import annotations

import copy
import glob
import os

import yaml


class MergeError(ValueError):
    """The configuration files could not be found, read or merged."""


def deep_merge(into, other):
    """Return ``other`` merged into ``into``; neither input is changed.

    Mappings are merged key by key, lists are concatenated, and any other
    value from ``other`` replaces the one in ``into``.
    """
    if isinstance(into, dict) and isinstance(other, dict):
        merged = {key: copy.deepcopy(value) for key, value in into.items()}
        for key, value in other.items():
            if key in into:
                merged[key] = deep_merge(into[key], value)
            else:
                merged[key] = copy.deepcopy(value)
        return merged
    if isinstance(into, list) and isinstance(other, list):
        return copy.deepcopy(into) + copy.deepcopy(other)
    return copy.deepcopy(other)


def merge_yaml_files(path):
    """Merge every ``*.yaml`` file in the directory, in name order.

    Returns the merged configuration as YAML text.
    """
    directory = os.fspath(path)
    files = sorted(glob.glob(os.path.join(glob.escape(directory), "*.yaml")))
    if not files:
        raise MergeError(f"yaml files not found for {directory}")

    merged: dict = {}
    for name in files:
        try:
            with open(name, encoding="utf-8") as handle:
                documents = list(yaml.safe_load_all(handle))
        except (OSError, yaml.YAMLError) as err:
            raise MergeError(f"cannot read {name}: {err}") from err
        for document in documents:
            if document is None:
                continue
            if not isinstance(document, dict):
                raise MergeError(
                    f"{name}: the top level of a configuration must be a mapping, "
                    f"not {type(document).__name__}"
                )
            merged = deep_merge(merged, document)

    return yaml.safe_dump(merged, sort_keys=False, default_flow_style=False, allow_unicode=True)