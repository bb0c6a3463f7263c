from __future__ import annotations

from random import Random

import pytest

import crack
import main
import settings_generator
from configuration import load_config
from settings_generator import random_configuration
from utilities import preprocess_message


@pytest.fixture(autouse=True)
def _isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)


def _last_line(capsys) -> str:
    return capsys.readouterr().out.strip().splitlines()[-1]


def test_main_round_trip(capsys):
    main.main(["-m", "Hello world", "--rotors", "I", "II", "III", "--plugs", "AB", "EQ"])
    cipher = _last_line(capsys)
    assert len(cipher.replace(" ", "")) == 10
    main.main(["-m", cipher, "--rotors", "I", "II", "III", "--plugs", "AB", "EQ", "--block", "0"])
    assert _last_line(capsys) == "HELLOWORLD"


def test_main_reference_output(capsys):
    main.main(["-m", "AAAAA", "--rotors", "I", "II", "III"])
    assert _last_line(capsys) == "BDZGO"


def test_main_keep_format_with_config(tmp_path, capsys):
    settings_generator.main(["--seed", "4", "--outfile", str(tmp_path / "key.json")])
    capsys.readouterr()
    main.main(["--config", str(tmp_path / "key.json"), "-m", "Hi, there!", "--keep-format"])
    cipher = _last_line(capsys)
    assert cipher[2:4] == ", " and cipher.endswith("!")
    main.main(["--config", str(tmp_path / "key.json"), "-m", cipher, "--keep-format"])
    assert _last_line(capsys) == "Hi, there!"


def test_main_file_io(tmp_path):
    src, dst = tmp_path / "in.txt", tmp_path / "out.txt"
    src.write_text("attack at dawn", encoding="utf-8")
    main.main(["--input", str(src), "--output", str(dst), "--rotors", "II", "IV", "V", "--window", "QWE"])
    assert len(dst.read_text(encoding="utf-8").split()) == 3


def test_main_rejects_bad_settings():
    with pytest.raises(SystemExit):
        main.main(["-m", "x", "--rotors", "I", "II"])
    with pytest.raises(SystemExit):
        main.main(["-m", "x", "--rotors", "I", "II", "III", "--plugs", "AB", "BC"])
    with pytest.raises(SystemExit):
        main.main(["-m", "x", "--config", "missing.json"])


def test_settings_generator_is_reproducible(tmp_path):
    a = random_configuration(Random(9))
    b = random_configuration(Random(9))
    assert a == b
    assert len(a.plugboard_pairs) == 10
    assert len({r.name for r in a.rotors}) == 3
    settings_generator.main(["--seed", "9", "--outfile", str(tmp_path / "k.json"), "--pairs", "4"])
    assert len(load_config(tmp_path / "k.json").plugboard_pairs) == 4


def test_crack_cli_writes_best_configuration(tmp_path, capsys, plaintext):
    key = random_configuration(Random(2), rotors=("I", "II", "III"), reflectors=("B",),
                               pairs=0, rings=False)
    cipher = key.build_machine().encode_text(preprocess_message(plaintext))
    window = "".join(chr(65 + o) for o in key.offsets)
    order = [r.name for r in key.rotors]
    out = tmp_path / "found.json"
    crack.main([cipher, "--rotors", "I", "II", "III", "--order", *order,
                "--window", window, "--top-k", "1", "--workers", "1",
                "--seed", "1", "--max-pairs", "2", "--output", str(out),
                "--plaintext", plaintext])
    text = capsys.readouterr().out
    assert "Agreement" in text
    found = load_config(out)
    assert found.offsets == key.offsets


def test_crack_cli_rejects_bad_space():
    with pytest.raises(SystemExit):
        crack.main(["ABCDEF", "--rotors", "I", "II"])
    with pytest.raises(SystemExit):
        crack.main(["ABCDEF", "--rotors", "I", "II", "III", "--window", "AB"])
    with pytest.raises(SystemExit):
        crack.main([])


def test_main_left_notch_flag_changes_stepping(capsys):
    main.main(["-m", "AAAAA", "--rotors", "I", "II", "III", "--window", "QAA"])
    plain = _last_line(capsys)
    main.main(["-m", "AAAAA", "--rotors", "I", "II", "III", "--window", "QAA", "--left-notch"])
    assert _last_line(capsys) != plain


def test_missing_input_file_exits_cleanly():
    with pytest.raises(SystemExit) as info:
        main.main(["--input", "missing.txt", "--rotors", "I", "II", "III"])
    assert "missing.txt" in str(info.value.code)
    with pytest.raises(SystemExit) as info:
        crack.main(["--input", "missing.txt"])
    assert "missing.txt" in str(info.value.code)


@pytest.mark.parametrize("flags", [["--top-k", "0"], ["--workers", "0"], ["--max-pairs", "20"]])
def test_crack_cli_rejects_bad_search_settings(flags):
    with pytest.raises(SystemExit) as info:
        crack.main(["ABCDEF", "--order", "I", "II", "III", *flags])
    assert str(info.value.code).startswith("❌")
