from __future__ import annotations

from typing import Any, Callable, Optional

from kube_waste.core.models.result import Result

FormatterFunc = Callable[[Result], Any]

FORMATTERS_REGISTRY: dict[str, FormatterFunc] = {}


def register(
    display_name: Optional[str] = None, *, rich_console: bool = False
) -> Callable[[FormatterFunc], FormatterFunc]:
    """
    Register a function that renders a list of wasteful pods.

    Args:
        display_name (str, optional): The name used by `--formatter`. Defaults to the function name.
        rich_console (bool): The function returns a rich renderable instead of plain text.
            Such output is printed through the rich console, and written to files through one.

    Raises:
        ValueError: If another formatter is already registered under the same name.
    """

    def decorator(func: FormatterFunc) -> FormatterFunc:
        name = display_name or func.__name__
        if name in FORMATTERS_REGISTRY and FORMATTERS_REGISTRY[name] is not func:
            raise ValueError(f"Formatter '{name}' is already registered")

        FORMATTERS_REGISTRY[name] = func
        func.__display_name__ = name  # type: ignore
        func.__rich_console__ = rich_console  # type: ignore
        return func

    return decorator


def find(name: str) -> FormatterFunc:
    """
    Find a formatter by the name it was registered under.

    Raises:
        ValueError: If no formatter is registered under that name. Config validation reports it to the user.
    """

    try:
        return FORMATTERS_REGISTRY[name]
    except KeyError as e:
        raise ValueError(f"Formatter '{name}' not found, available: {', '.join(list_available())}") from e


def list_available() -> list[str]:
    return sorted(FORMATTERS_REGISTRY)


__all__ = ["register", "find", "list_available"]
