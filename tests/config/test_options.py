"""Tests for extension options resolution and YAML loading."""

import pytest
import yaml

from workflow_config.loader import load_extension_options, load_yaml_file
from workflow_config.resolver import resolve_options
from workflow_config.schema import ExtensionOptions
from workflow_kernel.exceptions import (
    ConfigurationError,
    InvalidOptionsError,
    UndefinedOptionsError,
)


class TestDefaults:
    def test_defaults(self):
        options = resolve_options()

        assert options.render_actions == ("edit", "show")
        assert options.workflow_name is None
        assert options.no_transition_display is False
        assert options.no_transition_label == "workflow_transitions_empty"
        assert options.no_transition_icon == "fa fa-code-fork"
        assert options.dropdown_transitions_label == "workflow_transitions"
        assert options.dropdown_transitions_icon == "fa fa-code-fork"
        assert options.transitions_default_icon is None
        assert options.transitions_icons == {}
        assert options.view_transitions_role == "EDIT"
        assert options.apply_transitions_role == "EDIT"

    def test_empty_mapping_equals_defaults(self):
        assert resolve_options({}) == ExtensionOptions()


class TestResolution:
    def test_overrides_applied(self):
        options = resolve_options(
            {
                "render_actions": ["show"],
                "workflow_name": "pull_request",
                "transitions_icons": {"merge": "fa fa-times"},
                "transitions_default_icon": "fa fa-arrow-right",
            }
        )

        assert options.render_actions == ("show",)
        assert options.workflow_name == "pull_request"
        assert options.icon_for("merge") == "fa fa-times"
        assert options.icon_for("close") == "fa fa-arrow-right"

    def test_nullable_options_accept_none(self):
        options = resolve_options({"dropdown_transitions_icon": None})
        assert options.dropdown_transitions_icon is None

    def test_options_are_frozen(self):
        options = resolve_options()
        with pytest.raises(AttributeError):
            options.workflow_name = "other"

    def test_icons_are_read_only_copies(self):
        icons = {"merge": "fa fa-check"}
        options = resolve_options({"transitions_icons": icons})

        with pytest.raises(TypeError):
            options.transitions_icons["close"] = "fa fa-times"
        icons["merge"] = "fa fa-times"

        assert options.icon_for("merge") == "fa fa-check"
        assert options.to_dict()["transitions_icons"] == {"merge": "fa fa-check"}

    def test_direct_construction_is_read_only(self):
        options = ExtensionOptions(transitions_icons={"merge": "fa fa-check"})

        with pytest.raises(TypeError):
            options.transitions_icons["merge"] = "fa fa-times"

    def test_to_dict_round_trips_through_resolver(self):
        options = resolve_options({"render_actions": ["edit"], "no_transition_display": True})
        assert resolve_options(options.to_dict()) == options


class TestValidation:
    def test_unknown_option_rejected(self):
        with pytest.raises(UndefinedOptionsError) as exc_info:
            resolve_options({"render_action": ["edit"]})

        assert exc_info.value.unknown == ["render_action"]
        assert "render_actions" in exc_info.value.defined
        assert isinstance(exc_info.value, ConfigurationError)

    @pytest.mark.parametrize(
        "name,value",
        [
            ("render_actions", "edit"),
            ("render_actions", ["edit", 3]),
            ("workflow_name", 12),
            ("no_transition_display", "yes"),
            ("no_transition_label", None),
            ("no_transition_icon", 1),
            ("dropdown_transitions_label", ["x"]),
            ("transitions_default_icon", False),
            ("transitions_icons", ["fa"]),
            ("transitions_icons", {"merge": 1}),
            ("view_transitions_role", None),
            ("apply_transitions_role", 7),
        ],
    )
    def test_wrong_type_rejected(self, name, value):
        with pytest.raises(InvalidOptionsError) as exc_info:
            resolve_options({name: value})

        assert exc_info.value.option == name
        assert exc_info.value.code == "INVALID_OPTIONS"


class TestLoader:
    def test_load_per_admin_options(self, tmp_path):
        path = tmp_path / "workflow.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "admin.pull_request": {
                        "no_transition_display": True,
                        "transitions_icons": {"merge": "fa fa-check"},
                    },
                    "admin.issue": None,
                }
            )
        )

        options = load_extension_options(path)

        assert set(options) == {"admin.pull_request", "admin.issue"}
        assert options["admin.pull_request"].no_transition_display is True
        assert options["admin.pull_request"].icon_for("merge") == "fa fa-check"
        assert options["admin.issue"] == ExtensionOptions()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}
        assert load_extension_options(path) == {}

    def test_entry_must_be_mapping(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("admin.pull_request: [edit]\n")

        with pytest.raises(InvalidOptionsError):
            load_extension_options(path)

    def test_invalid_option_in_file(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("admin.pull_request:\n  colour: red\n")

        with pytest.raises(UndefinedOptionsError):
            load_extension_options(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_extension_options(tmp_path / "missing.yaml")
