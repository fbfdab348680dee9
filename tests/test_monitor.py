import pytest

from nemusdb.monitor import (
    BUILTIN_IMAGE_SIZE,
    DEFAULT_DIFFTEST_PORT,
    MonitorOptions,
    load_image,
    parse_args,
    welcome,
)


def test_defaults():
    options = parse_args(["nemu"])
    assert options == MonitorOptions()
    assert options.port == 1234


def test_all_options():
    options = parse_args(
        ["nemu", "-b", "--log=out.txt", "-d", "ref.so", "-p", "4321", "img.bin", "extra"]
    )
    assert options == MonitorOptions(
        batch=True, log_file="out.txt", diff_so_file="ref.so", image="img.bin", port=4321
    )


def test_long_options_with_separate_values_and_prefix():
    options = parse_args(["nemu", "--ba", "--diff", "ref.so", "--port", "99"])
    assert options.batch is True
    assert options.diff_so_file == "ref.so"
    assert options.port == 99


def test_short_option_attached_value():
    options = parse_args(["nemu", "-blrun.log"])
    assert options.batch is True
    assert options.log_file == "run.log"


def test_parsing_stops_at_image():
    options = parse_args(["nemu", "img.bin", "-b"])
    assert options.image == "img.bin"
    assert options.batch is False


def test_bad_port_keeps_default():
    assert parse_args(["nemu", "-p", "abc"]).port == DEFAULT_DIFFTEST_PORT


def test_help_prints_usage_and_exits(capsys):
    with pytest.raises(SystemExit) as info:
        parse_args(["nemu", "--help"])
    assert info.value.code == 0
    assert "Usage: nemu [OPTION...] IMAGE [args]" in capsys.readouterr().out


def test_unknown_option_prints_usage(capsys):
    with pytest.raises(SystemExit) as info:
        parse_args(["prog", "-z"])
    assert info.value.code == 0
    assert "run with batch mode" in capsys.readouterr().out


def test_missing_option_value_prints_usage():
    with pytest.raises(SystemExit):
        parse_args(["nemu", "--log"])


def test_load_builtin_image():
    memory = bytearray(16)
    assert load_image(None, memory) == BUILTIN_IMAGE_SIZE
    assert memory == bytearray(16)


def test_load_image_copies_file(tmp_path):
    data = bytes(range(10))
    image = tmp_path / "img.bin"
    image.write_bytes(data)
    memory = bytearray(32)
    assert load_image(str(image), memory, offset=4) == len(data)
    assert bytes(memory[4:4 + len(data)]) == data
    assert memory[:4] == bytearray(4)


def test_load_image_too_large(tmp_path):
    image = tmp_path / "big.bin"
    image.write_bytes(b"\x01" * 20)
    with pytest.raises(ValueError):
        load_image(str(image), bytearray(8))


def test_load_missing_image(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_image(str(tmp_path / "absent.bin"), bytearray(8))


def test_welcome_banner():
    text = welcome("riscv32", trace=False)
    assert "riscv32\33[0m-NEMU!" in text
    assert 'For help, type "help"' in text
    assert "OFF" in text and "ON\33" not in text


def test_welcome_with_trace():
    text = welcome("mips32", trace=True)
    assert "ON" in text
    assert "menuconfig" in text
    assert "mips32" in text