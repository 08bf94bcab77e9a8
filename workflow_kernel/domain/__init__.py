"""Pure value objects: workflow definitions, menus, translatable messages."""
