import app as app_module
import booking
from app_logger import LOGGER_NAME, setup_logging


def test_logger_does_not_propagate_to_root():
    logger = setup_logging()

    assert logger.name == LOGGER_NAME
    assert logger.propagate is False
    assert len(logger.handlers) == len(setup_logging().handlers)


def test_module_loggers_are_children():
    assert app_module.log.name == "bus_booking.app"
    assert booking.log.name == "bus_booking.booking"
