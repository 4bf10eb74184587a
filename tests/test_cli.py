"""Tests for the typepack-describe command."""

import json
import logging

import pytest

from typepack.cli import EXIT_ERROR, EXIT_OK, load_target, main


class TestLoadTarget:
    """Tests for module:Name resolution."""

    def test_builtin(self):
        assert load_target("builtins:int") is int

    def test_dotted_attribute(self):
        assert load_target("collections:OrderedDict.fromkeys") is not None

    @pytest.mark.parametrize("target", ["builtins", ":int", "builtins:"])
    def test_malformed(self, target):
        with pytest.raises(ValueError):
            load_target(target)


class TestMain:
    """Tests for the command entry point."""

    def test_text_output(self, capsys):
        assert main(["typepack.serialization.types:UInt16"]) == EXIT_OK
        out = capsys.readouterr().out
        assert "UINT16" in out
        assert "type_code" in out

    def test_json_output(self, capsys):
        assert main(["builtins:str", "--json"]) == EXIT_OK
        info = json.loads(capsys.readouterr().out)
        assert info["kind"] == "STRING"
        assert info["tree"] == "STRING<CHAR>"
        assert info["type_literal"] == "100a"
        assert info["compatible"] is False
        assert info["fixed_size"] is None
        assert info["type_code"].startswith("0x")

    def test_config_file(self, tmp_path, capsys):
        path = tmp_path / "typepack.yml"
        path.write_text("typepack:\n  default_integer_type: INT64\n", encoding="utf-8")
        assert main(["builtins:int", "--config", str(path), "--json"]) == EXIT_OK
        info = json.loads(capsys.readouterr().out)
        assert info["kind"] == "INT64"
        assert info["fixed_size"] == 8

    @pytest.mark.parametrize(
        "target",
        [
            "no_colon",
            "typepack_missing_module_xyz:Name",
            "builtins:missing_name_xyz",
            "builtins:object",
        ],
    )
    def test_errors(self, target, capsys):
        assert main([target]) == EXIT_ERROR
        assert "ERROR" in capsys.readouterr().err

    def test_missing_config(self, tmp_path, capsys):
        assert main(["builtins:int", "--config", str(tmp_path / "none.yml")]) == EXIT_ERROR

    def test_verbose_logs_type_code(self, capsys):
        logging.getLogger("typepack").handlers = []
        assert main(["builtins:float", "--verbose"]) == EXIT_OK
        err = capsys.readouterr().err
        assert "typepack.service" in err
        assert logging.getLogger("typepack").level == logging.DEBUG
