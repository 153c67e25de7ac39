"""
Tests for p3drum/schemas/p3_config.py: p3drum.toml loading.
"""

import pytest
from pydantic import ValidationError

from p3drum.schemas.p3_config import load_config


def test_defaults_when_no_file(isolated_config):
    config = load_config()
    assert config.storage.root == ""
    assert config.session.name == "New Session"
    assert config.session.bpm == 102.0
    assert (config.session.rows, config.session.columns) == (5, 8)
    assert config.library.default_collections == ["Drums", "Bass", "Synth"]
    assert config.library.user_imports == "User Imports"
    assert config.logging.level == "WARNING"


def test_explicit_path(isolated_config, tmp_path):
    path = tmp_path / "custom.toml"
    path.write_text(
        '[storage]\nroot = "/srv/p3"\n\n'
        "[session]\nbpm = 90\nrows = 4\n\n"
        '[logging]\nlevel = "DEBUG"\n',
        encoding="utf-8",
    )
    config = load_config(str(path))
    assert config.storage.root == "/srv/p3"
    assert config.session.bpm == 90.0
    assert config.session.rows == 4
    assert config.session.columns == 8
    assert config.logging.level == "DEBUG"


def test_xdg_before_working_directory(isolated_config, tmp_path):
    xdg_file = tmp_path / "xdg" / "p3drum" / "p3drum.toml"
    xdg_file.parent.mkdir(parents=True)
    xdg_file.write_text('[session]\nname = "From XDG"\n', encoding="utf-8")
    (tmp_path / "p3drum.toml").write_text('[session]\nname = "From CWD"\n', encoding="utf-8")

    assert load_config().session.name == "From XDG"


def test_working_directory_file(isolated_config, tmp_path):
    (tmp_path / "p3drum.toml").write_text(
        '[library]\ndefault_collections = ["Kits"]\n', encoding="utf-8"
    )
    assert load_config().library.default_collections == ["Kits"]


def test_missing_override_falls_through(isolated_config, tmp_path):
    assert load_config(str(tmp_path / "nope.toml")).session.bpm == 102.0


def test_out_of_range_bpm_rejected(isolated_config, tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text("[session]\nbpm = 999\n", encoding="utf-8")
    with pytest.raises(ValidationError):
        load_config(str(path))
