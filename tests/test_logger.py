import logging

from eventfeed.utils.logger import ContextFormatter, logger


def test_extra_fields_are_appended():
    record = logger.makeRecord("eventfeed", logging.INFO, __file__, 1, "Fetched events", (), None,
                               extra={"tab": "past", "count": 3})
    line = ContextFormatter(fmt="%(message)s").format(record)
    assert line == "Fetched events | count=3 tab=past"


def test_plain_records_are_unchanged():
    record = logging.makeLogRecord({"msg": "Health check", "levelno": logging.INFO})
    assert ContextFormatter(fmt="%(message)s").format(record) == "Health check"


def test_logger_does_not_propagate():
    assert logger.name == "eventfeed"
    assert logger.propagate is False
