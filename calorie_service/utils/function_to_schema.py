import inspect
import re
import typing
from typing import Callable, Dict, Iterable

TYPE_MAP = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
    list: "array",
    dict: "object",
    type(None): "null",
}

_ARG_LINE = re.compile(r"^\s*(\w+)\s*(?:\([^)]*\))?\s*:\s*(.+)$")


def _json_type(annotation) -> str:
    # Optional[X] is Union[X, None]; describe it as X
    if typing.get_origin(annotation) is typing.Union:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            annotation = args[0]
    return TYPE_MAP.get(annotation, "string")


def _split_docstring(doc: str):
    """Return (description, {param: description}) from a Google-style docstring."""
    description_lines = []
    params: Dict[str, str] = {}
    section = None
    current = None
    for line in inspect.cleandoc(doc or "").splitlines():
        stripped = line.strip()
        if stripped in ("Args:", "Arguments:", "Parameters:"):
            section = "args"
            continue
        if stripped in ("Returns:", "Return:", "Raises:"):
            section = "other"
            continue
        if section is None:
            description_lines.append(line)
        elif section == "args":
            match = _ARG_LINE.match(line)
            if match and line.startswith(("    ", "\t")) and not line.startswith(("        ", "\t\t")):
                current = match.group(1)
                params[current] = match.group(2).strip()
            elif current and stripped:
                params[current] += " " + stripped
    return "\n".join(description_lines).strip(), params


def function_to_schema(func: Callable, skip: Iterable[str] = ()) -> dict:
    """
    Build an OpenAI function-tool declaration from a function signature.

    Parameter types come from annotations, descriptions from the ``Args:``
    section of the docstring. Parameters named in ``skip`` (context the caller
    supplies, such as the database session) are left out.
    """
    skip = set(skip)
    try:
        signature = inspect.signature(func)
        hints = typing.get_type_hints(func)
    except (ValueError, TypeError, NameError) as e:
        raise ValueError(
            f"Failed to get signature for function {func.__name__}: {str(e)}"
        )

    description, param_docs = _split_docstring(func.__doc__)

    properties = {}
    required = []
    for param in signature.parameters.values():
        if param.name in skip or param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        prop = {"type": _json_type(hints.get(param.name, param.annotation))}
        if param.name in param_docs:
            prop["description"] = param_docs[param.name]
        properties[param.name] = prop
        if param.default is inspect.Parameter.empty:
            required.append(param.name)

    return {
        "type": "function",
        "function": {
            "name": func.__name__,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties,
                "required": required,
            },
        },
    }
