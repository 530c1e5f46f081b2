"""
Shell script templates

Remote operations are POSIX ``sh`` scripts assembled from templates with
``{{name}}`` placeholders. Every substituted value is either an
identifier (validated, inserted verbatim) or a ``Quoted`` literal
(inserted through ``shlex.quote``). Raw string formatting is never used
to build a script.
"""
import re
import shlex
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Union

from ...core.exceptions import InvalidNameError, ScriptTemplateError

_PLACEHOLDER = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")
_SAFE_IDENTIFIER = re.compile(r"^[A-Za-z0-9._/@:+,=%-]+$")


@dataclass(frozen=True)
class Quoted:
    """A value that may contain anything; rendered shell-quoted"""
    value: str


def quoted(value: Any) -> Quoted:
    return Quoted(str(value))


def is_safe_identifier(value: str) -> bool:
    """No whitespace, quotes or shell metacharacters"""
    return bool(value) and bool(_SAFE_IDENTIFIER.fullmatch(value))


def validate_identifier(field: str, value: str) -> str:
    """
    Check that a value can be interpolated unquoted into a script.

    Raises:
        InvalidNameError: Value is empty or contains unsafe characters
    """
    if not isinstance(value, str) or not is_safe_identifier(value):
        raise InvalidNameError(field, str(value))
    return value


class ScriptTemplate:
    """A shell script with named ``{{placeholders}}``"""

    def __init__(self, text: str):
        self.text = text
        self.placeholders: FrozenSet[str] = frozenset(_PLACEHOLDER.findall(text))

    def render(self, **values: Union[str, int, Quoted]) -> str:
        """
        Substitute every placeholder.

        Raises:
            ScriptTemplateError: A placeholder has no value or a value has no placeholder
            InvalidNameError: An unquoted value is not a safe identifier
        """
        missing = self.placeholders - values.keys()
        if missing:
            raise ScriptTemplateError(f"missing script values: {', '.join(sorted(missing))}")
        unknown = values.keys() - self.placeholders
        if unknown:
            raise ScriptTemplateError(f"unknown script placeholders: {', '.join(sorted(unknown))}")

        rendered: Dict[str, str] = {}
        for name, value in values.items():
            if isinstance(value, Quoted):
                rendered[name] = shlex.quote(value.value)
            else:
                rendered[name] = validate_identifier(name, str(value))

        return _PLACEHOLDER.sub(lambda m: rendered[m.group(1)], self.text)

    def __repr__(self) -> str:
        return f"ScriptTemplate(placeholders={sorted(self.placeholders)})"
