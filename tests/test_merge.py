import pytest
import yaml

from probewatch.merge import MergeError, deep_merge, merge_yaml_files


def assert_merge(tmp_path, into, other, expected):
    (tmp_path / "config1.yaml").write_text(into)
    (tmp_path / "config2.yaml").write_text(other)
    actual = merge_yaml_files(tmp_path)
    assert yaml.safe_load(actual) == yaml.safe_load(expected)


def test_section_merge(tmp_path):
    into = """
http:
  - name: "test 1"
    url: "http://localhost:8080"
    method: "GET"
tcp:
  - name: "test 2"
    host: "localhost:8080"
"""
    other = """
notify:
  slack:
    - name: "slack"
      webhook: "https://hooks.example.com/services/xxxxxx"
"""
    expected = """
http:
  - name: "test 1"
    url: "http://localhost:8080"
    method: "GET"
tcp:
  - name: "test 2"
    host: "localhost:8080"
notify:
  slack:
    - name: "slack"
      webhook: "https://hooks.example.com/services/xxxxxx"
"""
    assert_merge(tmp_path, into, other, expected)


def test_same_probe_merge(tmp_path):
    into = """
http:
  - name: "test 1"
    url: "http://localhost:8080"
    method: "GET"
"""
    other = """
http:
  - name: "test 2"
    url: "http://localhost:8181"
    method: "GET"
"""
    expected = """
http:
  - name: "test 1"
    url: "http://localhost:8080"
    method: "GET"
  - name: "test 2"
    url: "http://localhost:8181"
    method: "GET"
"""
    assert_merge(tmp_path, into, other, expected)


def test_notify_merge(tmp_path):
    into = """
notify:
  slack:
    - name: slack
      webhook: "https://hooks.example.com/services/xxxxxx"
"""
    other = """
notify:
  discord:
    - name: discord
      webhook: "https://discord.example.com/api/webhooks/xxxxxx"
"""
    expected = """
notify:
  slack:
    - name: slack
      webhook: "https://hooks.example.com/services/xxxxxx"
  discord:
    - name: discord
      webhook: "https://discord.example.com/api/webhooks/xxxxxx"
"""
    assert_merge(tmp_path, into, other, expected)


def test_notify_array_merge(tmp_path):
    into = """
notify:
  slack:
    - name: slack1
      webhook: "https://hooks.example.com/services/xxxxxx"
"""
    other = """
notify:
  slack:
    - name: slack2
      webhook: "https://hooks.example.com/services/xxxxxx"
"""
    expected = """
notify:
  slack:
    - name: slack1
      webhook: "https://hooks.example.com/services/xxxxxx"
    - name: slack2
      webhook: "https://hooks.example.com/services/xxxxxx"
"""
    assert_merge(tmp_path, into, other, expected)


def test_settings_merge(tmp_path):
    into = """
settings:
  name: easeprobe
  sla:
    schedule: "daily"
    time: "00:00"
  notify:
    retry:
      times: 5
      interval: 10
"""
    other = """
settings:
  name: easeprobe_from
  probe:
    timeout: 10s
    interval: 30s
  sla:
    schedule: "weekly"
"""
    expected = """
settings:
  name: easeprobe_from
  probe:
    timeout: 10s
    interval: 30s
  notify:
    retry:
      times: 5
      interval: 10
  sla:
    schedule: "weekly"
    time: "00:00"
"""
    assert_merge(tmp_path, into, other, expected)


def test_missing_directory_fails():
    with pytest.raises(MergeError, match="yaml files not found"):
        merge_yaml_files("[]")


def test_empty_directory_fails(tmp_path):
    with pytest.raises(MergeError):
        merge_yaml_files(tmp_path)


def test_wrong_yaml_fails(tmp_path):
    (tmp_path / "config.yaml").write_text("wrong yaml")
    with pytest.raises(MergeError):
        merge_yaml_files(tmp_path)


def test_broken_yaml_fails(tmp_path):
    (tmp_path / "config.yaml").write_text("a: [1, 2\n")
    with pytest.raises(MergeError):
        merge_yaml_files(tmp_path)


def test_other_extensions_ignored(tmp_path):
    (tmp_path / "a.yaml").write_text("x: 1\n")
    (tmp_path / "b.yml").write_text("x: 2\n")
    assert yaml.safe_load(merge_yaml_files(tmp_path)) == {"x": 1}


def test_deep_merge_does_not_change_inputs():
    into = {"a": {"b": [1]}, "c": 1}
    other = {"a": {"b": [2], "d": 3}, "c": 4}
    merged = deep_merge(into, other)
    assert merged == {"a": {"b": [1, 2], "d": 3}, "c": 4}
    assert into == {"a": {"b": [1]}, "c": 1}
    assert other == {"a": {"b": [2], "d": 3}, "c": 4}


def test_deep_merge_scalar_replaces():
    assert deep_merge({"a": [1, 2]}, {"a": "text"}) == {"a": "text"}
    assert deep_merge(1, 2) == 2