"""
Workflow Kernel

Adapter layer between persisted admin entities and the ``transitions``
state-machine engine:
- Immutable workflow definitions
- Registry lookup by subject and optional workflow name
- Enabled-transition and guard evaluation delegated to the engine
- Typed exceptions and structured logging shared by every package
"""

__version__ = "0.1.0"
