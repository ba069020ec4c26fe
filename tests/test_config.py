"""
Tests for configuration loading.
"""

import pytest

from cc_router.config import DEFAULT_CONFIG, deep_merge, load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in ("CC_ROUTER_CONFIG", "CC_ROUTER_OSC_SEND_PORT",
                "CC_ROUTER_ROUTER_DEBUG_MODE", "CC_ROUTER_MIDI_INPUT_PORT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


class TestDeepMerge:

    def test_nested_override(self):
        merged = deep_merge({'a': {'x': 1, 'y': 2}}, {'a': {'y': 3}})
        assert merged == {'a': {'x': 1, 'y': 3}}

    def test_base_untouched(self):
        base = {'a': {'x': 1}}
        deep_merge(base, {'a': {'x': 2}})
        assert base == {'a': {'x': 1}}


class TestLoadConfig:

    def test_defaults_without_file(self, tmp_path):
        config = load_config(str(tmp_path / "missing.yaml"))
        assert config.to_dict() == DEFAULT_CONFIG
        assert config.get('osc', 'send_port') == 11000
        assert config.get('router', 'default_device_index') == 1

    def test_yaml_overrides_merge(self, tmp_path):
        path = tmp_path / "router.yaml"
        path.write_text("osc:\n  send_port: 12000\nrouter:\n  debug_mode: false\n")

        config = load_config(str(path))

        assert config.get('osc', 'send_port') == 12000
        assert config.get('osc', 'receive_port') == 11001
        assert config.router['debug_mode'] is False
        assert config.path == path

    def test_cwd_config_yaml(self, tmp_path):
        (tmp_path / "config.yaml").write_text("midi:\n  channel: 3\n")
        assert load_config().midi['channel'] == 3

    def test_env_var_path(self, tmp_path, monkeypatch):
        path = tmp_path / "other.yaml"
        path.write_text("catalog:\n  path: maps\n")
        monkeypatch.setenv("CC_ROUTER_CONFIG", str(path))
        assert load_config().catalog['path'] == "maps"

    def test_invalid_file_falls_back(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("- just\n- a list\n")

        config = load_config(str(path))

        assert config.to_dict() == DEFAULT_CONFIG
        assert "Could not load config" in capsys.readouterr().out

    def test_env_overrides_cast_to_default_type(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CC_ROUTER_OSC_SEND_PORT", "12345")
        monkeypatch.setenv("CC_ROUTER_ROUTER_DEBUG_MODE", "false")
        monkeypatch.setenv("CC_ROUTER_MIDI_INPUT_PORT", "XL3")

        config = load_config(str(tmp_path / "missing.yaml"))

        assert config.get('osc', 'send_port') == 12345
        assert config.get('router', 'debug_mode') is False
        assert config.get('midi', 'input_port') == "XL3"

    def test_missing_key_default(self, tmp_path):
        config = load_config(str(tmp_path / "missing.yaml"))
        assert config.get('osc', 'nope', default=5) == 5
        assert config['nope'] == {}

    def test_env_override_skips_null_section(self, monkeypatch, tmp_path):
        path = tmp_path / "router.yaml"
        path.write_text("osc: null\nrouter:\n  debug_mode: true\n")
        monkeypatch.setenv("CC_ROUTER_OSC_SEND_PORT", "12000")
        monkeypatch.setenv("CC_ROUTER_ROUTER_DEBUG_MODE", "false")

        config = load_config(str(path))

        assert config.osc is None
        assert config.get('osc', 'send_port', default=11000) == 11000
        assert config.get('router', 'debug_mode') is False

    def test_each_load_is_independent(self, tmp_path):
        first = tmp_path / "a.yaml"
        first.write_text("osc:\n  host: 10.0.0.2\n")
        config = load_config(str(first))
        other = load_config(str(tmp_path / "missing.yaml"))
        assert config.get('osc', 'host') == "10.0.0.2"
        assert other.get('osc', 'host') == "127.0.0.1"
