from __future__ import annotations

import logging
import warnings
from typing import TYPE_CHECKING

import pytest

from json_key_translator.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture(autouse=True)
def reset_logger_utils() -> Iterator[None]:
    showwarning = warnings.showwarning
    yield
    LoggerUtils.reset()
    LoggerUtils.get_logger().setLevel(logging.NOTSET)
    warnings.showwarning = showwarning
