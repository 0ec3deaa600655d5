"""Tests for the command-line interface.

WHY: Build scripts call ``mif dump`` and ``mif join`` and rely on the
MIF arriving on stdout or in the output directory, and on a non-zero
exit status for every failure.

HOW: main() is called with explicit argv. capsys captures stdout and
stderr; SystemExit carries the exit status of failing runs.

RULES:
- Successful runs return normally from main()
- Failing runs raise SystemExit(1) and print ``Error: ...`` to stderr
"""

import importlib
import io
import types

import pytest

from mif_converter import config
from mif_converter.cli import build_parser, main

JOIN_TOML = """
[["a.rom"]]
width = 24
depth = 3
joins = ["a.prog.mif", "ab.prog.mif"]
[["a.rom"]]
width = 24
depth = 1
skips = [0xffffff]
[["a.rom"]]
first = "msb"
depth = 1
joins = ["ab.data.mif"]

[["b.rom"]]
width = 24
depth = 1
joins = ["ab.prog.mif"]
[["b.rom"]]
width = 24
depth = 2
skips = [0xffffff]
[["b.rom"]]
depth = 1
joins = ["ab.data.mif"]
"""


class TestParser:
    def test_dump_defaults(self):
        args = build_parser().parse_args(["dump"])
        assert args.input == "-"
        assert args.width == 16
        assert args.first == "lsb"

    def test_dump_options(self):
        args = build_parser().parse_args(["dump", "rom.bin", "-w", "24", "-f", "msb"])
        assert args.input == "rom.bin"
        assert args.width == 24
        assert args.first == "msb"

    def test_join_defaults(self):
        args = build_parser().parse_args(["join"])
        assert args.toml == "-"
        assert args.bins == "."
        assert args.mifs == "."
        assert args.no_comments is False

    def test_join_options(self):
        args = build_parser().parse_args(
            ["join", "join.toml", "-i", "bins", "-o", "mifs", "-n"])
        assert args.toml == "join.toml"
        assert args.bins == "bins"
        assert args.mifs == "mifs"
        assert args.no_comments is True

    def test_subcommand_required(self):
        with pytest.raises(SystemExit) as excinfo:
            build_parser().parse_args([])
        assert excinfo.value.code == 2

    def test_invalid_first(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["dump", "-f", "big"])


class TestDumpCommand:
    def test_dump_file(self, tmp_path, capsys):
        rom = tmp_path / "rom.bin"
        rom.write_bytes(bytes.fromhex("ffffff" "ffffff" "010000"))
        main(["dump", str(rom), "--width", "24"])
        out = capsys.readouterr().out
        assert out.startswith("WIDTH=24;\nDEPTH=3;\n")
        assert "\t[0..1]  :   FFFFFF;\n" in out
        assert "\t2  :   000001;\n" in out
        assert "--" not in out

    def test_dump_stdin(self, monkeypatch, capsys):
        stdin = types.SimpleNamespace(buffer=io.BytesIO(bytes.fromhex("1234")))
        monkeypatch.setattr("sys.stdin", stdin)
        main(["dump", "-f", "msb"])
        assert "\t0  :   1234;\n" in capsys.readouterr().out

    def test_dump_not_integral_multiple(self, tmp_path, capsys):
        rom = tmp_path / "rom.bin"
        rom.write_bytes(b"\x00" * 3)
        with pytest.raises(SystemExit) as excinfo:
            main(["dump", str(rom)])
        assert excinfo.value.code == 1
        assert "Error: No integral multiple of word width" in capsys.readouterr().err

    def test_dump_width_out_of_range(self, tmp_path, capsys):
        rom = tmp_path / "rom.bin"
        rom.write_bytes(b"")
        with pytest.raises(SystemExit) as excinfo:
            main(["dump", str(rom), "-w", "129"])
        assert excinfo.value.code == 1
        assert "Width 129 out of [1, 128]" in capsys.readouterr().err

    def test_dump_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(["dump", str(tmp_path / "missing.bin")])
        assert excinfo.value.code == 1
        assert "Error: Cannot open" in capsys.readouterr().err


class TestJoinCommand:
    def test_join(self, sample_files, bins_dir, mifs_dir, tmp_path, capsys):
        toml = tmp_path / "join.toml"
        toml.write_text(JOIN_TOML, encoding="utf-8")
        main(["join", str(toml), "-i", str(bins_dir), "-o", str(mifs_dir)])
        text = (mifs_dir / "ab.prog.mif").read_text(encoding="utf-8")
        assert text.startswith("-- 0: a.rom\n-- 3: b.rom\n\nWIDTH=24;\nDEPTH=4;\n")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Joined 2 binaries to 3 MIF(s)" in captured.err

    def test_join_no_comments(self, sample_files, bins_dir, mifs_dir, tmp_path):
        toml = tmp_path / "join.toml"
        toml.write_text(JOIN_TOML, encoding="utf-8")
        main(["join", str(toml), "-i", str(bins_dir), "-o", str(mifs_dir), "-n"])
        text = (mifs_dir / "ab.data.mif").read_text(encoding="utf-8")
        assert text.startswith("WIDTH=16;\n")

    def test_join_from_stdin(self, sample_files, bins_dir, mifs_dir, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(JOIN_TOML))
        main(["join", "-i", str(bins_dir), "-o", str(mifs_dir)])
        assert (mifs_dir / "a.prog.mif").is_file()

    def test_join_invalid_toml(self, tmp_path, capsys):
        toml = tmp_path / "join.toml"
        toml.write_text('[["a.rom"]]\ndepth = 1\n', encoding="utf-8")
        with pytest.raises(SystemExit) as excinfo:
            main(["join", str(toml)])
        assert excinfo.value.code == 1
        assert "Error: Cannot load" in capsys.readouterr().err

    def test_join_trailing_bytes(self, write_bin, bins_dir, mifs_dir, tmp_path, capsys):
        write_bin("x.bin", b"\x00" * 5)
        toml = tmp_path / "join.toml"
        toml.write_text('[["x.bin"]]\ndepth = 2\njoins = ["x.mif"]\n', encoding="utf-8")
        with pytest.raises(SystemExit) as excinfo:
            main(["join", str(toml), "-i", str(bins_dir), "-o", str(mifs_dir)])
        assert excinfo.value.code == 1
        assert "Error: 1 B left over in `x.bin`" in capsys.readouterr().err
        assert not (mifs_dir / "x.mif").exists()


class TestDumpOutput:
    def test_lines_end_in_newline_only(self, tmp_path, capsysbinary):
        rom = tmp_path / "rom.bin"
        rom.write_bytes(bytes.fromhex("0100" "0100" "0200"))
        main(["dump", str(rom)])
        out = capsysbinary.readouterr().out
        assert b"\r" not in out
        assert out.startswith(b"WIDTH=16;\nDEPTH=3;\n")
        assert out.endswith(b"\t2  :   0002;\nEND;\n")


class TestConfigOverrides:
    @pytest.fixture
    def reload_config(self, monkeypatch):
        """Reload config under a patched environment, restoring it afterwards."""
        yield lambda: importlib.reload(config)
        monkeypatch.undo()
        importlib.reload(config)

    def test_invalid_first_does_not_break_import(self, monkeypatch, reload_config):
        monkeypatch.setenv("MIF_FIRST", "big")
        reloaded = reload_config()
        assert reloaded.DEFAULT_FIRST == "big"

    def test_invalid_first_fails_dump(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr("mif_converter.cli.DEFAULT_FIRST", "big")
        rom = tmp_path / "rom.bin"
        rom.write_bytes(b"\x00\x00")
        with pytest.raises(SystemExit) as excinfo:
            main(["dump", str(rom)])
        assert excinfo.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_invalid_first_leaves_join_working(
        self, sample_files, bins_dir, mifs_dir, tmp_path, monkeypatch,
    ):
        monkeypatch.setattr("mif_converter.cli.DEFAULT_FIRST", "big")
        toml = tmp_path / "join.toml"
        toml.write_text(JOIN_TOML, encoding="utf-8")
        main(["join", str(toml), "-i", str(bins_dir), "-o", str(mifs_dir)])
        assert (mifs_dir / "ab.prog.mif").is_file()

    def test_width_override(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr("mif_converter.cli.DEFAULT_WIDTH", "8")
        rom = tmp_path / "rom.bin"
        rom.write_bytes(b"\x2a")
        main(["dump", str(rom)])
        assert capsys.readouterr().out.startswith("WIDTH=8;\nDEPTH=1;\n")

    def test_invalid_width_is_a_usage_error(self, monkeypatch):
        monkeypatch.setattr("mif_converter.cli.DEFAULT_WIDTH", "wide")
        with pytest.raises(SystemExit) as excinfo:
            build_parser().parse_args(["dump"])
        assert excinfo.value.code == 2
