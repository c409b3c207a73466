"""
Identifier conversions for generated code.
"""
import keyword
import re
from typing import Dict, Iterable, Iterator, Optional

from ..exceptions import SchemaError

_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_NON_IDENTIFIER = re.compile(r"[^0-9A-Za-z_]+")


def to_snake_case(name: str) -> str:
    """
    Convert a schema name to snake_case.

    "initializeCounter" -> "initialize_counter", "HTTPState" -> "http_state"
    """
    value = _ACRONYM_BOUNDARY.sub(r"\1_\2", name)
    value = _WORD_BOUNDARY.sub(r"\1_\2", value)
    value = _NON_IDENTIFIER.sub("_", value)
    value = re.sub(r"_+", "_", value).strip("_").lower()
    return value or "_"


def to_upper_snake_case(name: str) -> str:
    value = to_snake_case(name).upper()
    if value[0].isdigit():
        value = f"_{value}"
    return value


def docstring_text(text: str) -> str:
    """
    Make schema text safe to embed in a generated docstring.

    Quotes and backslashes are replaced, whitespace runs collapse to one
    space and unprintable characters are dropped.
    """
    text = text.replace('"', "'").replace("\\", "/")
    return " ".join("".join(ch for ch in text if ch.isprintable() or ch.isspace()).split())


def sanitize_identifier(name: str, reserved: Iterable[str] = ()) -> str:
    """
    Make a snake_case identifier safe to use as a Python name.

    Keywords, soft keywords and reserved names get a trailing underscore;
    a leading digit gets a leading underscore.
    """
    value = to_snake_case(name)
    if value[0].isdigit():
        value = f"_{value}"
    if keyword.iskeyword(value) or keyword.issoftkeyword(value) or value in set(reserved):
        value = f"{value}_"
    return value


class NameTable:
    """
    Registry of the names bound in one generated scope.

    Claiming a name twice is a generation error: two schema entities would
    otherwise silently shadow each other in the generated module.
    """

    def __init__(self, scope: str, taken: Iterable[str] = ()):
        self.scope = scope
        self._owners: Dict[str, str] = {name: "import" for name in taken}

    def __contains__(self, name: str) -> bool:
        return name in self._owners

    def claim(self, name: str, owner: str) -> str:
        existing: Optional[str] = self._owners.get(name)
        if existing is not None:
            raise SchemaError(
                f"Generated name '{name}' for {owner} clashes with {existing} in {self.scope}"
            )
        self._owners[name] = owner
        return name

    def __iter__(self) -> Iterator[str]:
        return iter(self._owners)
