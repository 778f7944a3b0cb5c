import io
from datetime import datetime, timedelta

import pytest

from trojanproxy.log import LogLevel
from trojanproxy.simplelog import SimpleLogger


def split_line(line):
    stamp, message = line[:19], line[20:]
    assert line[19] == " "
    logged = datetime.strptime(stamp, "%Y/%m/%d %H:%M:%S")
    assert abs(logged - datetime.now()) < timedelta(minutes=1)
    return message


def test_info_line_has_timestamp(capsys):
    logger = SimpleLogger()
    logger.info("hello", "world")
    err = capsys.readouterr().err
    assert split_line(err) == "hello world\n"


def test_formatted_line_gets_newline(capsys):
    logger = SimpleLogger()
    logger.warnf("%s-%s", "a", "b")
    err = capsys.readouterr().err
    assert split_line(err) == "a-b\n"


def test_level_filters(capsys):
    logger = SimpleLogger()
    logger.set_log_level(LogLevel.ERROR)
    logger.info("no")
    logger.warn("no")
    logger.debug("no")
    logger.error("yes")
    err = capsys.readouterr().err
    assert err.count("\n") == 1
    assert err.endswith("yes\n")


def test_set_output_has_no_effect(capsys):
    logger = SimpleLogger()
    sink = io.StringIO()
    logger.set_output(sink)
    logger.tracef("trace %d", 7)
    assert sink.getvalue() == ""
    assert capsys.readouterr().err.endswith("trace 7\n")


def test_fatal_prints_and_exits(capsys):
    logger = SimpleLogger()
    with pytest.raises(SystemExit) as info:
        logger.fatal("dead")
    assert info.value.code == 1
    assert capsys.readouterr().err.endswith("dead\n")


def test_fatal_silent_when_off(capsys):
    logger = SimpleLogger()
    logger.set_log_level(LogLevel.OFF)
    with pytest.raises(SystemExit):
        logger.fatalf("dead %s", "x")
    assert capsys.readouterr().err == ""