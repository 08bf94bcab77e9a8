"""
workflow_config -- Options of the workflow admin extension.

Public API:
    ExtensionOptions          Frozen, resolved options.
    resolve_options()         Validate a raw mapping into ExtensionOptions.
    load_extension_options()  Read per-admin options from a YAML file.
"""

from workflow_config.loader import load_extension_options
from workflow_config.resolver import resolve_options
from workflow_config.schema import ExtensionOptions

__all__ = [
    "ExtensionOptions",
    "load_extension_options",
    "resolve_options",
]
