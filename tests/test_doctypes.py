import pytest

from probewatch.doctypes import DocType, VarType


@pytest.mark.parametrize(
    "name, expected",
    [
        ("unknown", VarType.UNKNOWN),
        ("int", VarType.INT),
        ("float", VarType.FLOAT),
        ("string", VarType.STRING),
        ("bool", VarType.BOOL),
        ("time", VarType.TIME),
        ("duration", VarType.DURATION),
        ("unrecognized", VarType.UNKNOWN),
        ("INT", VarType.INT),
    ],
)
def test_var_type_from_name(name, expected):
    assert VarType.from_name(name) is expected


@pytest.mark.parametrize(
    "member, text",
    [
        (VarType.UNKNOWN, "unknown\n"),
        (VarType.INT, "int\n"),
        (VarType.FLOAT, "float\n"),
        (VarType.STRING, "string\n"),
        (VarType.BOOL, "bool\n"),
        (VarType.TIME, "time\n"),
        (VarType.DURATION, "duration\n"),
    ],
)
def test_var_type_yaml_round_trip(member, text):
    assert member.to_yaml() == text
    assert VarType.from_yaml(member.to_yaml()) is member


def test_var_type_yaml_error():
    with pytest.raises(ValueError):
        VarType.from_yaml("-name:: value\n")


def test_var_type_yaml_unknown_name():
    with pytest.raises(ValueError):
        VarType.from_yaml("integer\n")


@pytest.mark.parametrize(
    "name, expected",
    [
        ("unsupported", DocType.UNSUPPORTED),
        ("html", DocType.HTML),
        ("xml", DocType.XML),
        ("json", DocType.JSON),
        ("text", DocType.TEXT),
        ("Json", DocType.JSON),
        ("pdf", DocType.UNSUPPORTED),
    ],
)
def test_doc_type_from_name(name, expected):
    assert DocType.from_name(name) is expected


@pytest.mark.parametrize(
    "member, text",
    [
        (DocType.UNSUPPORTED, "unsupported\n"),
        (DocType.HTML, "html\n"),
        (DocType.XML, "xml\n"),
        (DocType.JSON, "json\n"),
        (DocType.TEXT, "text\n"),
    ],
)
def test_doc_type_yaml_round_trip(member, text):
    assert member.to_yaml() == text
    assert DocType.from_yaml(member.to_yaml()) is member


def test_doc_type_yaml_error():
    with pytest.raises(ValueError):
        DocType.from_yaml("-name:: value\n")


def test_str_is_lower_case_name():
    assert str(DocType.from_name("HTML")) == "html"
    assert str(VarType.from_name("Duration")) == "duration"
    assert f"{VarType.from_name('int')}" == "int"