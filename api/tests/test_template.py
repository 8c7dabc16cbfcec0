import pytest

from notifier.channels.template import find_missing_parameters, language_code, render


def test_render_replaces_named_parameter():
    assert render("Hello {name}!", {"name": "World"}) == "Hello World!"


def test_render_leaves_unknown_placeholders():
    assert render("{a}{b}", {"a": "1"}) == "1{b}"


def test_render_replaces_every_occurrence():
    assert render("{x}-{x}-{y}", {"x": "a", "y": "b"}) == "a-a-b"


def test_render_with_empty_params_is_identity():
    template = "Dear {name}, your code is {code}"
    assert render(template, {}) == template
    assert render(render(template, {}), {}) == template


def test_render_empty_template():
    assert render("", {"name": "World"}) == ""


def test_render_does_not_rescan_substituted_values():
    assert render("{a} and {b}", {"a": "{b}", "b": "B"}) == "{b} and B"
    assert render("{a}", {"a": "{a}"}) == "{a}"


def test_render_ignores_bare_key_without_braces():
    assert render("name {name}", {"name": "Ann"}) == "name Ann"


def test_render_handles_regex_metacharacters_in_keys_and_values():
    assert render("cost {a.b*} {c}", {"a.b*": "$1", "c": r"\1"}) == r"cost $1 \1"


def test_render_overlapping_keys():
    assert render("{ab}{a}", {"a": "1", "ab": "2"}) == "21"


def test_find_missing_parameters():
    template = "Hi {name}, order {order_id} ships {date}. {name}"
    assert find_missing_parameters(template, {"name": "Ann"}) == {"order_id", "date"}


def test_find_missing_parameters_none_missing():
    assert find_missing_parameters("Hi {name}", {"name": "Ann"}) == set()
    assert find_missing_parameters("", {}) == set()


def test_find_missing_parameters_skips_malformed_placeholders():
    assert find_missing_parameters("{} { unterminated", {}) == set()


@pytest.mark.parametrize(
    "locale,expected",
    [("", "en"), ("en_US", "en"), ("pt_BR", "pt"), ("fr", "fr"), ("de-DE", "de")],
)
def test_language_code(locale, expected):
    assert language_code(locale) == expected
