"""
Builders for item names, descriptions, code references and identifiers.

These helpers turn Gherkin structure and engine step metadata into the
fields of a start-item request.
"""

from __future__ import annotations

from typing import Iterable, Sequence
from urllib.parse import urlparse

from ..events import DataTable, DocString, HookType, StepArgument, StepDefinition
from ..transport import ItemAttribute, Parameter

COLON_INFIX = ": "

TABLE_INDENT = " " * 10
TABLE_SEPARATOR = "|"
DOCSTRING_DECORATOR = '\n"""\n'
NEW_LINE = "\r\n"

METHOD_OPENING_BRACKET = "("

HOOK_ITEMS: dict[HookType, tuple[str, str]] = {
    HookType.BEFORE: ("BEFORE_TEST", "Before hooks"),
    HookType.AFTER: ("AFTER_TEST", "After hooks"),
    HookType.BEFORE_STEP: ("BEFORE_METHOD", "Before step"),
    HookType.AFTER_STEP: ("AFTER_METHOD", "After step"),
}


def build_name(prefix: str | None, infix: str, text: str) -> str:
    """Concatenate an optional prefix, an infix and the main text."""
    return (prefix or "") + infix + text


def build_multiline_argument(argument: StepArgument | None, indent: str = TABLE_INDENT) -> str:
    """
    Render a doc string or data table step argument.

    Args:
        argument: The step argument, if any
        indent: Indentation placed before every table row

    Returns:
        The rendered argument, or an empty string if there is none
    """
    if isinstance(argument, DocString):
        return DOCSTRING_DECORATOR + argument.content + DOCSTRING_DECORATOR

    if isinstance(argument, DataTable):
        parts = [NEW_LINE]
        for row in argument.rows:
            parts.append(indent + TABLE_SEPARATOR)
            for cell in row:
                parts.append(f" {cell} {TABLE_SEPARATOR}")
            parts.append(NEW_LINE)
        return "".join(parts)

    return ""


def source_path(uri: str) -> str:
    """Path component of a feature URI ("file:/x/y.feature" -> "/x/y.feature")."""
    parsed = urlparse(uri)
    if parsed.scheme and len(parsed.scheme) > 1:
        return parsed.path
    return uri


def code_ref(uri: str, line: int, source_root: str = "src") -> str:
    """
    Build a "<path>:<line>" code reference for a feature-file location.

    The path starts at the first occurrence of source_root; when the URI
    does not contain it, the whole path is used.
    """
    path = source_path(uri)
    index = path.find(source_root) if source_root else -1
    if index >= 0:
        path = path[index:]
    return f"{path}:{line}"


def step_code_ref(definition: StepDefinition | None, fallback: str) -> str:
    """Code reference of a step: its definition location without the signature."""
    if definition is None or not definition.location:
        return fallback
    location = definition.location
    bracket = location.find(METHOD_OPENING_BRACKET)
    return location[:bracket] if bracket >= 0 else location


def build_parameters(arguments: Sequence[str]) -> list[Parameter]:
    """Positional step arguments as arg0..argN parameters."""
    return [Parameter(key=f"arg{i}", value=str(value)) for i, value in enumerate(arguments)]


def build_test_case_id(
    code_ref: str | None,
    arguments: Sequence[str] | None,
    definition: StepDefinition | None = None,
) -> str | None:
    """
    Derive a stable test case ID.

    A template declared on the step definition wins; it gets the argument
    values appended only when declared as parametrized. Otherwise the code
    reference is used, followed by the argument values if there are any.
    """
    suffix = f"[{','.join(arguments)}]" if arguments else ""

    if definition is not None and definition.test_case_id:
        if definition.parametrized:
            return definition.test_case_id + suffix
        return definition.test_case_id

    if code_ref is None:
        return None
    return code_ref + suffix


def hook_item(hook_type: HookType) -> tuple[str, str]:
    """
    Item type and name of a hook item.

    Raises:
        ValueError: If the hook type is not supported
    """
    try:
        return HOOK_ITEMS[hook_type]
    except KeyError:
        raise ValueError(f"Not supported hook type: {hook_type}") from None


def hook_message(hook_type: HookType, code_location: str) -> str:
    """Log message attributing a hook result to its code location."""
    is_before = hook_type == HookType.BEFORE
    return ("Before" if is_before else "After") + " hook: " + code_location


def parse_attribute(text: str, system: bool = False) -> ItemAttribute:
    """Parse "key:value" or "value" into an attribute."""
    key, sep, value = text.strip().partition(":")
    if not sep:
        return ItemAttribute(value=key, system=system)
    return ItemAttribute(value=value.strip(), key=key.strip() or None, system=system)


def parse_attributes(entries: Iterable[str]) -> list[ItemAttribute]:
    return [parse_attribute(entry) for entry in entries]


def tag_attributes(tags: Iterable[str]) -> list[ItemAttribute]:
    """Tags as key-less attributes, de-duplicated in order."""
    return [ItemAttribute(value=tag) for tag in dict.fromkeys(tags)]
