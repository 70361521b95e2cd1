from loguru import logger

from autoinvite.utils.logging import level_for_verbosity, setup_logging


def test_level_for_verbosity() -> None:
    assert level_for_verbosity(0) == "INFO"
    assert level_for_verbosity(1) == "DEBUG"
    assert level_for_verbosity(2) == "TRACE"
    assert level_for_verbosity(5) == "TRACE"


def test_file_sink_receives_bound_account(tmp_path) -> None:
    log_file = tmp_path / "output.log"
    setup_logging(0, str(log_file))
    try:
        logger.bind(account="@bot:example.org").info("Joined {}", "R1")
        logger.debug("hidden at INFO")
    finally:
        logger.remove()

    text = log_file.read_text()
    assert "[INFO] @bot:example.org: Joined R1" in text
    assert "hidden at INFO" not in text
