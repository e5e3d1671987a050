"""Tests for config selection and lookup."""

import pytest

from plantpal import create_app
from plantpal.config import DevConfig, ProdConfig, TestConfig, config_value, load_config


def test_load_config_defaults_to_prod(monkeypatch):
    monkeypatch.delenv("PLANTPAL_CONFIG", raising=False)

    assert load_config() is ProdConfig


def test_load_config_reads_env(monkeypatch):
    monkeypatch.setenv("PLANTPAL_CONFIG", "plantpal.config.DevConfig")

    assert load_config() is DevConfig


def test_load_config_explicit_path_wins(monkeypatch):
    monkeypatch.setenv("PLANTPAL_CONFIG", "plantpal.config.DevConfig")

    assert load_config("plantpal.config.TestConfig") is TestConfig


def test_load_config_unknown_class():
    with pytest.raises(AttributeError):
        load_config("plantpal.config.NopeConfig")


def test_config_value_reads_classes_and_flask_config():
    app = create_app(TestConfig)

    assert config_value(TestConfig, "STORAGE_BACKEND") == "memory"
    assert config_value(app.config, "STORAGE_BACKEND") == "memory"
    assert config_value(app.config, "MISSING", "fallback") == "fallback"


def test_create_app_survives_bad_config_path(monkeypatch):
    monkeypatch.setenv("PLANTPAL_CONFIG", "plantpal.config.NopeConfig")

    app = create_app()

    assert app.config["TESTING"] is False
