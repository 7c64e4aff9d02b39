import io

import pytest

from conftest import PROC_NET_DEV
from netdev.errors import MalformedFormatError, SourceUnavailableError
from netdev.models import COUNTER_NAMES
from netdev.parser import NetDevParser

HEADER = (
    "Inter-|   Receive                                                |  Transmit\n"
    "face |bytes packets errs drop|bytes packets errs drop\n"
)


def parse(text, **kwargs):
    return NetDevParser(**kwargs).parse_stream(io.StringIO(text))


def test_parse_single_device():
    parsed = parse(HEADER + "eth0: 1000 10 0 0 2000 20 0 0\n")

    assert parsed == {
        'eth0': {
            'receive_bytes': '1000',
            'receive_packets': '10',
            'receive_errs': '0',
            'receive_drop': '0',
            'transmit_bytes': '2000',
            'transmit_packets': '20',
            'transmit_errs': '0',
            'transmit_drop': '0',
        }
    }


def test_parse_kernel_layout():
    parsed = parse(PROC_NET_DEV)

    assert set(parsed) == {'lo', 'eth0', 'docker0'}
    for dev_stats in parsed.values():
        assert len(dev_stats) == 16
        assert set(COUNTER_NAMES) <= set(dev_stats)
    assert parsed['eth0']['receive_bytes'] == '3215442829'
    assert parsed['eth0']['receive_drop'] == '12'
    assert parsed['eth0']['receive_multicast'] == '1024'
    assert parsed['eth0']['transmit_errs'] == '3'
    assert parsed['docker0']['transmit_drop'] == '4'


def test_transmit_columns_use_receive_field_names():
    parsed = parse(
        "Inter-|   Receive  |  Transmit\n"
        " face |bytes packets|bytes colls\n"
        "  lo: 1 2 3 4\n"
    )

    assert parsed == {'lo': {
        'receive_bytes': '1',
        'receive_packets': '2',
        'transmit_bytes': '3',
        'transmit_packets': '4',
    }}


def test_colon_without_space():
    parsed = parse(HEADER + "  eth0:1000 10 0 0 2000 20 0 0\n")

    assert parsed['eth0']['receive_bytes'] == '1000'


def test_default_pattern_keeps_all_devices():
    assert set(parse(PROC_NET_DEV)) == {'lo', 'eth0', 'docker0'}
    assert set(parse(PROC_NET_DEV, ignored_devices='^$')) == {'lo', 'eth0', 'docker0'}


def test_ignored_devices():
    skipped = []
    parsed = parse(PROC_NET_DEV, ignored_devices='^(eth|docker)', on_skip=skipped.append)

    assert set(parsed) == {'lo'}
    assert skipped == ['eth0', 'docker0']


def test_ignored_devices_matches_anywhere_in_name():
    parsed = parse(PROC_NET_DEV, ignored_devices='0')

    assert set(parsed) == {'lo'}


def test_invalid_header():
    with pytest.raises(MalformedFormatError) as excinfo:
        parse(
            "Inter-|   Receive\n"
            " face |bytes packets errs drop\n"
            "eth0: 1000 10 0 0\n"
        )

    assert 'Invalid header line' in str(excinfo.value)
    assert excinfo.value.line == ' face |bytes packets errs drop'


def test_missing_header():
    with pytest.raises(MalformedFormatError):
        parse("Inter-|   Receive   |  Transmit\n")

    with pytest.raises(MalformedFormatError):
        parse("")


def test_short_line():
    line = "  eth1: 1000 10 0 0 2000 20 0"
    with pytest.raises(MalformedFormatError) as excinfo:
        parse(HEADER + "eth0: 1000 10 0 0 2000 20 0 0\n" + line + "\n")

    assert line in str(excinfo.value)
    assert excinfo.value.line == line


def test_long_line():
    with pytest.raises(MalformedFormatError):
        parse(HEADER + "eth0: 1000 10 0 0 2000 20 0 0 7\n")


def test_malformed_ignored_device_still_fails():
    with pytest.raises(MalformedFormatError):
        parse(HEADER + "eth0: 1000\n", ignored_devices='^eth')


def test_trailing_blank_lines():
    parsed = parse(HEADER + "eth0: 1000 10 0 0 2000 20 0 0\n\n")

    assert list(parsed) == ['eth0']


def test_header_only():
    assert parse(HEADER) == {}


def test_collect(proc_net_dev):
    parsed = NetDevParser(str(proc_net_dev)).collect()

    assert parsed == parse(PROC_NET_DEV)


def test_collect_missing_file(tmp_path):
    with pytest.raises(SourceUnavailableError):
        NetDevParser(str(tmp_path / 'missing')).collect()


def test_collect_keeps_counter_names_between_calls(proc_net_dev):
    parser = NetDevParser(str(proc_net_dev))
    first = parser.collect()
    proc_net_dev.write_text(PROC_NET_DEV.replace('6657302', '6657999'))
    second = parser.collect()

    assert first['lo']['receive_bytes'] == '6657302'
    assert second['lo']['receive_bytes'] == '6657999'
    assert {dev: set(stats) for dev, stats in first.items()} == \
        {dev: set(stats) for dev, stats in second.items()}


def test_ignored_devices_eth_prefix():
    parsed = parse(PROC_NET_DEV, ignored_devices='^eth')

    assert set(parsed) == {'lo', 'docker0'}


def test_collect_undecodable_device_name(tmp_path):
    path = tmp_path / 'dev'
    path.write_bytes(HEADER.encode() + b"  eth\xff0: 1000 10 0 0 2000 20 0 0\n")

    parsed = NetDevParser(str(path)).collect()

    assert list(parsed) == ['eth\udcff0']
    assert parsed['eth\udcff0']['transmit_bytes'] == '2000'
