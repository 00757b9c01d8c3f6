"""
Config key checking: a YAML section may only use names its dataclass declares,
so a misspelled threshold fails the load instead of quietly keeping the default.
"""

from dataclasses import fields, is_dataclass
from typing import Any, Dict, Type, cast, get_type_hints


def validate_keys(
    raw_config: Dict[str, Any], data_class: Type[Any], path: str = ""
) -> None:
    """Raises ValueError naming the section and the unexpected keys; recurses into sub-sections."""
    known = {f.name for f in fields(data_class)}
    unexpected = sorted(set(raw_config) - known)
    if unexpected:
        raise ValueError(
            f"Unexpected config keys in section '{path or '<top>'}': {unexpected} "
            f"(expected some of {sorted(known)})"
        )

    # config modules use postponed annotations, so field.type is a string
    hints = get_type_hints(data_class)
    for name in known:
        section = raw_config.get(name)
        section_type = hints.get(name)
        if isinstance(section, dict) and is_dataclass(section_type):
            validate_keys(
                section,
                cast(Type[Any], section_type),
                path=f"{path}.{name}" if path else name,
            )
