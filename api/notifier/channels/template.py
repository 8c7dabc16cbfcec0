"""
Literal ``{name}`` placeholder substitution.

This is deliberately not a template engine: there are no expressions, filters
or escapes. A placeholder is an opening brace, a parameter key, and a closing
brace, matched literally.
"""

import re

# A well-formed placeholder: one or more non-brace characters between braces.
_PLACEHOLDER = re.compile(r"\{([^{}]+)\}")


def render(template: str, params: dict[str, str]) -> str:
    """
    Replace every ``{key}`` whose key is in *params* with its value.

    - Placeholders for unknown keys are left verbatim.
    - Substitution is a single left-to-right pass, so a substituted value is
      never scanned again for further placeholders.
    """
    if not template or not params:
        return template

    # Longest placeholders first so that overlapping keys resolve predictably.
    keys = sorted(params, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape("{" + key + "}") for key in keys))
    return pattern.sub(lambda m: params[m.group(0)[1:-1]], template)


def find_missing_parameters(template: str, params: dict[str, str]) -> set[str]:
    """Return the placeholder keys in *template* that *params* does not provide."""
    if not template:
        return set()
    return {key for key in _PLACEHOLDER.findall(template) if key not in params}


def language_code(locale: str) -> str:
    """Derive a language code from a locale: ``"en_US"`` -> ``"en"``, empty -> ``"en"``."""
    if not locale:
        return "en"
    return re.split(r"[_-]", locale, maxsplit=1)[0]
