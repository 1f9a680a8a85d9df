"""Import-string resolution for configured factories and handler types."""

import importlib
from typing import Any


def import_string(path: str) -> Any:
    """Import an attribute from a dotted path.

    Both ``"package.module:attr"`` (entry point style) and
    ``"package.module.attr"`` are accepted. Nested attributes after the colon
    are walked, e.g. ``"pkg.mod:Outer.Inner"``.

    Args:
        path: Import path of the attribute

    Returns:
        The imported object

    Raises:
        ImportError: If the module cannot be imported or the attribute is missing
    """
    path = path.strip()
    if not path:
        raise ImportError("Import path cannot be empty")

    if ":" in path:
        module_name, _, attr_path = path.partition(":")
    else:
        module_name, _, attr_path = path.rpartition(".")

    if not module_name or not attr_path or module_name.startswith("."):
        raise ImportError(f"'{path}' is not a valid import path")

    try:
        module = importlib.import_module(module_name)
    except (TypeError, ValueError) as e:
        raise ImportError(f"'{path}' is not a valid import path: {e}") from e

    obj: Any = module
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as e:
            raise ImportError(
                f"Module '{module_name}' has no attribute '{attr_path}'"
            ) from e
    return obj


__all__ = ["import_string"]
