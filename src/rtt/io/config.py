"""
Module: io.config
Purpose: YAML config loading into validated rate-through-time options
Dependencies: yaml, pydantic (via rtt.core.models)
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Union, cast

import yaml

from rtt.core.errors import InvalidArgument
from rtt.core.models import RttOptions, options_from_kwargs

__all__ = ["load_config_mapping", "load_config"]


def load_config_mapping(path: Union[str, Path]) -> Mapping[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidArgument(f"Config at {path} is not a mapping")
    return cast(Mapping[str, Any], data)


def load_config(path: Optional[Union[str, Path]] = None, **overrides: Any) -> RttOptions:
    """
    Options from a YAML file, with keyword overrides applied on top.

    ``None`` values in ``overrides`` are skipped so that unset CLI flags
    do not clobber file values.
    """
    data = dict(load_config_mapping(path)) if path is not None else {}
    data.update({k: v for k, v in overrides.items() if v is not None})
    return options_from_kwargs(**data)
