"""
Options loader (``workflow_config.loader``).

Responsibility
--------------
Reads YAML files holding extension options keyed by admin code and
resolves each entry into an ``ExtensionOptions``::

    admin.pull_request:
      render_actions: [edit, show]
      no_transition_display: true
      transitions_icons:
        merge: fa fa-check

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top level or entry not a mapping  -> ``InvalidOptionsError``.
* Unknown option / wrong type  -> see ``workflow_config.resolver``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from workflow_config.resolver import resolve_options
from workflow_config.schema import ExtensionOptions
from workflow_kernel.exceptions import InvalidOptionsError
from workflow_kernel.logging_config import get_logger

logger = get_logger("config.loader")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        InvalidOptionsError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise InvalidOptionsError(str(path), "mapping", type(data).__name__)
    return data


def parse_extension_options(data: dict[str, Any]) -> dict[str, ExtensionOptions]:
    """Resolve every ``admin_code -> options`` entry of ``data``."""
    resolved: dict[str, ExtensionOptions] = {}
    for admin_code, options in data.items():
        if options is None:
            options = {}
        if not isinstance(options, dict):
            raise InvalidOptionsError(str(admin_code), "mapping", type(options).__name__)
        resolved[str(admin_code)] = resolve_options(options)
    return resolved


def load_extension_options(path: Path) -> dict[str, ExtensionOptions]:
    """Load and resolve the per-admin extension options stored at ``path``."""
    resolved = parse_extension_options(load_yaml_file(Path(path)))
    logger.info(
        "extension_options_loaded",
        extra={"path": str(path), "admin_codes": sorted(resolved)},
    )
    return resolved
