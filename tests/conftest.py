# Copyright 2025 Ilya Makarov
#
# Licensed under the Business Source License 1.1
# Change Date: 2028-11-05
# Change License: Apache License 2.0

import pytest

from filterbox.core import config as config_module
from filterbox.core.config import FilterBoxConfig
from filterbox.core.logger import reset_loggers


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Default settings, no user files or FILTERBOX_* variables"""
    for name in (
        "FILTERBOX_HOME",
        "FILTERBOX_LOG_DIR",
        "FILTERBOX_DEFAULT_PRIORITY",
        "FILTERBOX_STRICT_CONFIG",
        "FILTERBOX_LOG_LEVEL",
        "FILTERBOX_FILE_LOGGING",
        "FILTERBOX_NO_FILE_LOGS",
    ):
        monkeypatch.delenv(name, raising=False)
    config_module.set_config(FilterBoxConfig())
    yield
    config_module.set_config(None)
    reset_loggers()
