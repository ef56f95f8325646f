from logging import DEBUG, INFO, WARNING

import pytest
from pydantic import ValidationError

from sa_barcode.shared.config import load_config

BASE_CONFIG = """
[general]
title = "test"

[logging]
level = "debug"

[paths]
logs = "logs"

[network]
host = "127.0.0.1"
port = 8000
reload = false

[network.rate_limit]
timeout_period = 5
requests_per_second = 3

[decrypt]
v1_pk128 = "keys/a.pem"
v1_pk74 = "keys/b.pem"
v2_pk128 = "keys/c.pem"
v2_pk74 = '''
  -----BEGIN RSA PUBLIC KEY-----
  AAAA
  -----END RSA PUBLIC KEY-----
'''
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(BASE_CONFIG)
    return path


def test_load_config(config_file):
    config = load_config(config_file)

    assert config.logging.level == DEBUG
    assert config.network.rate_limit.requests_per_second == 3
    assert config.decrypt.v1_pk128 == "keys/a.pem"
    # Surrounding whitespace is dropped so inline PEMs are recognised
    assert config.decrypt.v2_pk74.startswith("-----BEGIN RSA PUBLIC KEY-----")


def test_specific_config_overrides_sections(config_file, tmp_path):
    specific = tmp_path / "specific.toml"
    specific.write_text('[logging]\nlevel = "WARNING"\n')

    config = load_config(config_file, specific)

    assert config.logging.level == WARNING
    assert config.general.title == "test"


def test_unknown_log_level_defaults_to_info(config_file, tmp_path):
    specific = tmp_path / "specific.toml"
    specific.write_text('[logging]\nlevel = "VERBOSE"\n')
    assert load_config(config_file, specific).logging.level == INFO


def test_missing_decrypt_section(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(BASE_CONFIG.split("[decrypt]")[0])
    with pytest.raises(ValidationError):
        load_config(path)


def test_repository_config_loads():
    config = load_config()
    assert config.network.port == 8000
