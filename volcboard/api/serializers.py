"""YAML export of raw Kubernetes objects."""

from __future__ import annotations

from typing import Any

import yaml


class _NoAliasDumper(yaml.SafeDumper):
    """Never emit anchors/aliases, even for repeated sub-objects."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


def to_yaml(obj: Any) -> str:
    """Dump *obj* as block YAML, preserving key order and never wrapping lines."""
    return yaml.dump(
        obj,
        Dumper=_NoAliasDumper,
        indent=2,
        width=float("inf"),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
