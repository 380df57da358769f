"""Tests for the logger implementations and LoggerFactory."""

import io

import pytest

from bridge_testenv.services.logger.factory import LoggerFactory
from bridge_testenv.services.logger.memory_logger import MemoryLogger
from bridge_testenv.services.logger.pretty_logger import PrettyLogger


def test_factory_caches_instances():
    factory = LoggerFactory(default_impl="memory")
    assert factory.create() is factory.create()
    assert factory.create() is factory.create("memory")


def test_factory_rejects_unknown_default():
    with pytest.raises(ValueError, match="available: pretty, memory"):
        LoggerFactory(default_impl="loki")


def test_factory_rejects_unknown_name():
    factory = LoggerFactory()
    with pytest.raises(ValueError, match="Unknown logger implementation: 'nope'"):
        factory.create("nope")


def test_factory_forwards_options_to_default_impl():
    stream = io.StringIO()
    factory = LoggerFactory(colors=False, stream=stream)
    factory.create().info("hello")
    assert "[INFO] hello" in stream.getvalue()


def test_memory_logger_records_levels_and_context():
    log = MemoryLogger()
    log.info("started", port=4222)
    log.warn("slow")
    log.debug("detail")
    assert log.messages == ["started", "slow", "detail"]
    assert log.entries[0].ctx == {"port": 4222}
    assert [e.msg for e in log.at_level("WARN")] == ["slow"]


def test_pretty_logger_plain_output_with_context():
    stream = io.StringIO()
    log = PrettyLogger(colors=False, stream=stream)
    log.error("boom", step="nats")
    out = stream.getvalue()
    assert "[ERROR] boom" in out
    assert "step=nats" in out
    assert "\033[" not in out


def test_pretty_logger_hides_debug_unless_verbose():
    quiet, loud = io.StringIO(), io.StringIO()
    PrettyLogger(colors=False, stream=quiet).debug("hidden")
    PrettyLogger(colors=False, verbose=True, stream=loud).debug("shown")
    assert quiet.getvalue() == ""
    assert "[DEBUG] shown" in loud.getvalue()


def test_memory_logger_rejects_unknown_level():
    with pytest.raises(ValueError, match="Unknown level 'TRACE'"):
        MemoryLogger().at_level("TRACE")


def test_bound_logger_adds_context_and_writes_to_parent():
    root = MemoryLogger()
    child = root.bind(component="streaming")
    child.info("server up", port=4222)
    child.bind(role="bypass").warn("reconnecting", component="override")

    assert root.find("server up").ctx == {"component": "streaming", "port": 4222}
    assert root.find("reconnecting").ctx == {"component": "override", "role": "bypass"}
    assert root.find("missing") is None


def test_memory_logger_clear():
    log = MemoryLogger()
    log.error("first")
    log.clear()
    assert log.entries == []


def test_factory_from_config():
    from bridge_testenv.config.context import HarnessConfig

    memory = LoggerFactory.from_config(HarnessConfig(overrides={"BRIDGE_TEST_LOGGER": "memory"}))
    assert isinstance(memory.create(), MemoryLogger)

    pretty = LoggerFactory.from_config(
        HarnessConfig(overrides={
            "BRIDGE_TEST_LOGGER": "pretty", "BRIDGE_TEST_VERBOSE": "1", "NO_COLOR": "1",
        })
    )
    log = pretty.create()
    assert isinstance(log, PrettyLogger)
    assert log._verbose and not log._colors

    with pytest.raises(ValueError, match="Unknown logger implementation: 'json'"):
        LoggerFactory.from_config(HarnessConfig(overrides={"BRIDGE_TEST_LOGGER": "json"}))
