"""Environment-provided configuration and logging setup.

Settings are read from the process environment (optionally seeded from a
``.env`` file by the CLI). The driver forwards them to every test script
child through the environment, so both sides build their Settings the same
way.
"""
from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Mapping
from datetime import datetime

from pydantic import BaseModel, Field

_FALSE_VALUES = {"", "0", "false", "no", "off"}


def env_flag(value: str | None) -> bool:
    """Interpret an environment variable as a boolean flag."""
    if value is None:
        return False
    return value.strip().lower() not in _FALSE_VALUES


class Settings(BaseModel):
    """Run-wide configuration for the harness.

    Attributes:
        debug: Emit debug log records on stderr, prefixed with ``# DBG:``.
        out_dir: Directory for capture artifacts and the run log. None means
            a fresh temporary directory is created by the driver.
        test_name: Base name for capture artifacts.
        func_pattern: Glob that test function names must match.
        ignore_out: Ignore stdout unless an assertion sets an expectation.
        ignore_err: Ignore stderr unless an assertion sets an expectation.
        ignore_ret: Ignore the exit status unless an assertion sets one.
        run_id: Identifier shared by the driver and its children.
    """

    debug: bool = False
    out_dir: str | None = None
    test_name: str = "test"
    func_pattern: str = "test_*"
    ignore_out: bool = False
    ignore_err: bool = False
    ignore_ret: bool = False
    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            Settings: The populated settings. Unset variables keep defaults.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {
            "debug": env_flag(env.get("TEST_DEBUG")),
            "ignore_out": env_flag(env.get("TEST_IGNORE_OUT")),
            "ignore_err": env_flag(env.get("TEST_IGNORE_ERR")),
            "ignore_ret": env_flag(env.get("TEST_IGNORE_RET")),
        }
        if env.get("TEST_OUT_DIR"):
            values["out_dir"] = env["TEST_OUT_DIR"]
        if env.get("TEST_NAME"):
            values["test_name"] = env["TEST_NAME"]
        if env.get("TEST_FUNC_PATTERN"):
            values["func_pattern"] = env["TEST_FUNC_PATTERN"]
        if env.get("CMDPROVE_RUN_ID"):
            values["run_id"] = env["CMDPROVE_RUN_ID"]
        return cls(**values)

    def to_env(self) -> dict[str, str]:
        """Render settings as environment variables for a child process."""
        env = {
            "TEST_NAME": self.test_name,
            "TEST_FUNC_PATTERN": self.func_pattern,
            "CMDPROVE_RUN_ID": self.run_id,
            "TEST_DEBUG": "1" if self.debug else "",
            "TEST_IGNORE_OUT": "1" if self.ignore_out else "",
            "TEST_IGNORE_ERR": "1" if self.ignore_err else "",
            "TEST_IGNORE_RET": "1" if self.ignore_ret else "",
        }
        if self.out_dir:
            env["TEST_OUT_DIR"] = self.out_dir
        return env


def configure_logging(settings: Settings, name: str = "cmdprove", log_name: str | None = None) -> logging.Logger:
    """Set up the ``cmdprove`` logger for one run.

    A per-run log file is written to ``settings.out_dir`` (when set), named
    ``{YYYYmmddHHMMSS}-{run_id}.log``. With ``settings.debug`` a second
    handler mirrors records to stderr in the ``# DBG:`` format. Records
    never propagate to the root logger, so they cannot leak into the report.

    Args:
        settings: The run settings.
        name: Logger name to configure.
        log_name: File name for the log, overriding the timestamped default.

    Returns:
        logging.Logger: The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if settings.out_dir:
        os.makedirs(settings.out_dir, exist_ok=True)
        if log_name is None:
            timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
            log_name = f"{timestamp}-{settings.run_id}.log"
        log_path = os.path.join(settings.out_dir, log_name)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s - %(message)s"))
        logger.addHandler(file_handler)

    if settings.debug:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(logging.DEBUG)
        stream_handler.setFormatter(logging.Formatter("# DBG: %(message)s"))
        logger.addHandler(stream_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger
