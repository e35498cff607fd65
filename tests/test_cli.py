from datetime import datetime

import pytest
from typer.testing import CliRunner

from srmigrate.cli import cli
from srmigrate.cli.common import context
from srmigrate.core.models import ColumnDescriptor, TableDescriptor

CONFIG = """\
[db]
host = 127.0.0.1
port = 3306
user = root
password = secret

[other]
be_num = 3
use_decimal_v3 = false
output_dir = {output_dir}

[table-rule.1]
database = ^shop$
table = ^events$
"""

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.conf"
    path.write_text(CONFIG.format(output_dir=tmp_path / "result"), encoding="utf-8")
    return path


@pytest.fixture
def source(monkeypatch, make_introspector):
    stub = make_introspector(
        [TableDescriptor("shop", "shop", "events", size_bytes=2048, created_at=datetime(2024, 1, 1))],
        [
            ColumnDescriptor("shop", "shop", "events", "ts", 1, "datetime"),
            ColumnDescriptor("shop", "shop", "events", "kind", 2, "varchar"),
        ],
    )
    monkeypatch.setattr(context, "create_introspector", lambda config: stub)
    return stub


def test_rules_lists_configured_rules(config_file):
    result = runner.invoke(cli.app, ["--config", str(config_file), "rules"])

    assert result.exit_code == 0
    assert "Configured rules" in result.output


def test_missing_config_exits_with_error(tmp_path):
    result = runner.invoke(cli.app, ["--config", str(tmp_path / "nope.conf"), "rules"])

    assert result.exit_code == 1
    assert "Cannot read config file" in result.output


def test_generate_writes_files(config_file, source, tmp_path):
    result = runner.invoke(cli.app, ["--config", str(config_file), "generate", "--yes"])

    assert result.exit_code == 0
    written = sorted(p.name for p in (tmp_path / "result").iterdir())
    assert written == [
        "flink-create.1.sql",
        "flink-create.all.sql",
        "starrocks-create.1.sql",
        "starrocks-create.all.sql",
        "starrocks-external-create.1.sql",
        "starrocks-external-create.all.sql",
    ]
    assert source.closed is True


def test_generate_dry_run_writes_nothing(config_file, source, tmp_path):
    result = runner.invoke(cli.app, ["--config", str(config_file), "generate", "--dry-run"])

    assert result.exit_code == 0
    assert not (tmp_path / "result").exists()
