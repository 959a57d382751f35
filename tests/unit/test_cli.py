"""
Unit tests for the date-transform command-line interface.
"""

import io
import json

import pytest
from pyspark.sql.types import LongType, StringType, StructField, StructType

from date_transform.cli.transform_cli import build_parser, main

CONFIG_YAML = """
date_transform:
  source_fields: "a, ts"
  source_format: "MM/dd/yy"
  target_fields: "b, ts_date"
  target_format: "yyyy-MM-dd"
  seconds_or_milliseconds: Seconds
  output_schema:
    type: struct
    fields:
      - {name: id, type: string, nullable: true}
      - {name: b, type: string, nullable: false}
      - {name: ts_date, type: string, nullable: true}
"""

INPUT_SCHEMA = StructType([
    StructField("id", StringType(), True),
    StructField("a", StringType(), True),
    StructField("ts", LongType(), True),
])


@pytest.fixture
def files(tmp_path):
    config_path = tmp_path / "transform.yaml"
    config_path.write_text(CONFIG_YAML)
    schema_path = tmp_path / "input_schema.json"
    schema_path.write_text(INPUT_SCHEMA.json())
    return {"config": str(config_path), "schema": str(schema_path), "dir": tmp_path}


def set_stdin(monkeypatch, lines):
    monkeypatch.setattr("sys.stdin", io.StringIO("".join(json.dumps(line) + "\n" for line in lines)))


class TestParser:
    """Tests for argument parsing"""

    def test_no_command_prints_help(self, capsys):
        """Test that a missing command is an error"""
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_run_requires_input_schema(self):
        """Test that run needs --input-schema"""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["run", "--config", "x.yaml"])


class TestValidateCommand:
    """Tests for the validate command"""

    def test_valid_config(self, files, capsys):
        """Test validating a correct configuration"""
        code = main(["validate", "--config", files["config"], "--input-schema", files["schema"]])
        out = capsys.readouterr().out
        assert code == 0
        assert "Configuration is valid." in out
        assert "Output fields: id, b, ts_date" in out

    def test_invalid_config_lists_failures(self, tmp_path, capsys):
        """Test that every failure is printed"""
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("""
date_transform:
  source_fields: "a, ts"
  target_fields: "b"
  target_format: "yyyy-MM-ddq"
""")
        code = main(["validate", "--config", str(config_path)])
        out = capsys.readouterr().out
        assert code == 1
        assert "Validation failed with 3 error(s)" in out
        assert "Output schema must be specified." in out
        assert "invalid date pattern 'yyyy-MM-ddq'" in out
        assert "properties: source_fields, target_fields" in out

    def test_missing_config_file(self, tmp_path):
        """Test that a missing configuration file fails cleanly"""
        assert main(["validate", "--config", str(tmp_path / "absent.yaml")]) == 1


class TestRunCommand:
    """Tests for the run command"""

    def test_transforms_records(self, files, monkeypatch, capsys):
        """Test converting JSON-lines records"""
        set_stdin(monkeypatch, [
            {"id": "1", "a": "07/04/24", "ts": 1700000000},
            {"id": "2", "a": "12/31/99", "ts": None, "ignored": True},
        ])
        errors_path = files["dir"] / "errors.jsonl"

        code = main([
            "run", "--config", files["config"], "--input-schema", files["schema"],
            "--errors", str(errors_path),
        ])

        assert code == 0
        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert lines == [
            {"id": "1", "b": "2024-07-04", "ts_date": "2023-11-14"},
            {"id": "2", "b": "1999-12-31", "ts_date": None},
        ]
        assert errors_path.read_text() == ""

    def test_blank_value_goes_to_error_output(self, files, monkeypatch, capsys):
        """Test that records routed to the error channel are written as error entries"""
        set_stdin(monkeypatch, [{"id": "3", "a": "", "ts": 0}])
        errors_path = files["dir"] / "errors.jsonl"

        code = main([
            "run", "--config", files["config"], "--input-schema", files["schema"],
            "--errors", str(errors_path),
        ])

        assert code == 0
        assert capsys.readouterr().out == ""
        [entry] = [json.loads(line) for line in errors_path.read_text().splitlines()]
        assert entry["error_code"] == 31
        assert entry["invalid_record"] == {"id": "3", "a": "", "ts": 0}
        assert " : " in entry["error_message"]

    def test_unparseable_value_fails(self, files, monkeypatch, capsys):
        """Test that a fatal conversion error stops the run"""
        set_stdin(monkeypatch, [{"id": "4", "a": "yesterday", "ts": 0}])
        code = main(["run", "--config", files["config"], "--input-schema", files["schema"]])
        assert code == 1
        assert "Cannot parse value yesterday" in capsys.readouterr().err

    def test_invalid_json_fails(self, files, monkeypatch, capsys):
        """Test that malformed input lines are reported with their line number"""
        monkeypatch.setattr("sys.stdin", io.StringIO('{"id": "1", "a": "07/04/24"}\nnot json\n'))
        code = main(["run", "--config", files["config"], "--input-schema", files["schema"]])
        assert code == 1
        assert "Line 2" in capsys.readouterr().err

    def test_input_schema_mismatch(self, files, tmp_path, capsys):
        """Test that the input schema is validated before reading records"""
        schema_path = tmp_path / "other_schema.json"
        schema_path.write_text(StructType([StructField("id", StringType(), True)]).json())
        code = main(["run", "--config", files["config"], "--input-schema", str(schema_path)])
        assert code == 1
        assert "Source field 'a' is not present in input schema." in capsys.readouterr().err
