import logging

from consoletex.config import DEFAULTS, configure_logging, load_config


def test_missing_file_gives_defaults(tmp_path):
    assert load_config(tmp_path / "absent.ini") == DEFAULTS


def test_reads_all_sections(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text(
        "[Logging]\nlevel = debug\n"
        "[Gim]\nswizzle = no\nuser = someone\nprogram = batch\n"
        "[Svr]\nglobal_index = 0x10\n"
    )
    config = load_config(path)
    assert config['log_level'] == 'DEBUG'
    assert config['gim_swizzle'] is False
    assert config['gim_user'] == 'someone'
    assert config['gim_program'] == 'batch'
    assert config['svr_global_index'] == 16


def test_partial_file_keeps_other_defaults(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text("[Gim]\nuser = someone\n")
    config = load_config(path)
    assert config['gim_user'] == 'someone'
    assert config['gim_swizzle'] is True
    assert config['svr_global_index'] is None


def test_bad_value_falls_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "config.ini"
    path.write_text("[Svr]\nglobal_index = twelve\n")
    with caplog.at_level(logging.WARNING, logger="consoletex.config"):
        assert load_config(path) == DEFAULTS
    assert "using defaults" in caplog.text


def test_environment_variable(tmp_path, monkeypatch):
    path = tmp_path / "env.ini"
    path.write_text("[Gim]\nprogram = from-env\n")
    monkeypatch.setenv("CONSOLETEX_CONFIG", str(path))
    assert load_config()['gim_program'] == 'from-env'


def test_configure_logging_sets_package_level():
    logger = logging.getLogger('consoletex')
    try:
        configure_logging('DEBUG')
        assert logger.level == logging.DEBUG
        configure_logging(config={'log_level': 'ERROR'})
        assert logger.level == logging.ERROR
    finally:
        logger.setLevel(logging.NOTSET)
