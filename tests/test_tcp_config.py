from minnow.address import Address
from minnow.tcp_config import FdAdapterConfig, TCPConfig


def test_tcp_config_defaults():
    cfg = TCPConfig()
    assert cfg.rt_timeout == TCPConfig.TIMEOUT_DFLT
    assert cfg.recv_capacity == TCPConfig.DEFAULT_CAPACITY
    assert cfg.send_capacity == TCPConfig.DEFAULT_CAPACITY
    assert cfg.isn == 137


def test_tcp_config_default_values_are_fixed():
    cfg = TCPConfig()
    assert cfg.recv_capacity == 64000
    assert cfg.send_capacity == 64000
    assert cfg.rt_timeout == 1000


def test_adapter_config_defaults():
    cfg = FdAdapterConfig()
    assert cfg.source == Address("0", 0)
    assert cfg.destination == Address("0", 0)
    assert cfg.loss_rate_dn == 0
    assert cfg.loss_rate_up == 0


def test_adapter_configs_are_independent():
    first = FdAdapterConfig()
    second = FdAdapterConfig()
    first.source = Address("10.0.0.1", 1234)
    first.loss_rate_up = 5
    assert second.source == Address("0", 0)
    assert second.loss_rate_up == 0