from pathlib import Path

import pytest

from rfoperator.config import CMDFlags, Config, parse_flags


def test_defaults():
    flags = parse_flags([])
    assert flags.listen_addr == ":9710"
    assert flags.metrics_path == "/metrics"
    assert flags.debug is False
    assert flags.development is False
    assert Path(flags.kubeconfig).parts[-2:] == (".kube", "config")


def test_parse_string_flags():
    flags = parse_flags(["-listen-address", "1234", "--metrics-path=/awesome"])
    assert flags.listen_addr == "1234"
    assert flags.metrics_path == "/awesome"


def test_bool_flags_without_value():
    flags = parse_flags(["-debug", "-development"])
    assert flags.debug is True
    assert flags.development is True


def test_bool_flag_with_explicit_false():
    flags = parse_flags(["-debug=false"])
    assert flags.debug is False


def test_invalid_bool_exits():
    with pytest.raises(SystemExit) as info:
        parse_flags(["-debug=maybe"])
    assert info.value.code == 2


def test_unknown_flag_exits():
    with pytest.raises(SystemExit) as info:
        parse_flags(["-nope"])
    assert info.value.code == 2


def test_kubeconfig_flag():
    flags = parse_flags(["-kubeconfig", "/tmp/kc"])
    assert flags.kubeconfig == "/tmp/kc"


def test_to_operator_config():
    flags = CMDFlags(listen_addr="1234", metrics_path="/awesome")
    assert flags.to_operator_config() == Config(
        listen_address="1234", metrics_path="/awesome"
    )


def test_parsed_flags_round_trip_to_config():
    flags = parse_flags(["-listen-address=:8080"])
    config = flags.to_operator_config()
    assert config.listen_address == flags.listen_addr
    assert config.metrics_path == flags.metrics_path