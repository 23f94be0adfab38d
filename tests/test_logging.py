import logging

import pytest

from salonbook.logging_config import QUIET_LOGGERS, setup_logging


@pytest.fixture
def restore_levels():
    names = ("salonbook",) + QUIET_LOGGERS
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def test_quiet_mode_keeps_booking_logs(restore_levels):
    setup_logging(verbose=False)
    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
    assert logging.getLogger("salonbook").isEnabledFor(logging.INFO)


def test_verbose_mode_leaves_server_loggers_alone(restore_levels):
    logging.getLogger("uvicorn.access").setLevel(logging.NOTSET)
    setup_logging(verbose=True)
    assert logging.getLogger("uvicorn.access").level == logging.NOTSET
