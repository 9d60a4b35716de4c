import os
import re
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

_SECRETS_LOADED = False

# Most systems allow far more, but secrets should never come close
MAX_ENV_VAR_SIZE = 32768


def _candidate_secret_dirs() -> Iterable[Path]:
    custom_dir = os.getenv("MILKSYNC_SECRETS_DIR")
    if custom_dir:
        yield Path(custom_dir)
    yield Path.cwd() / "secrets"


def _load_secret_files_into_env() -> None:
    """Expose secret files as environment variables.

    A file named ``sync_prod_db_password`` becomes ``SYNC_PROD_DB_PASSWORD``.
    Variables already present in the environment win. Only the first
    existing secrets directory is read.
    """
    global _SECRETS_LOADED
    if _SECRETS_LOADED:
        return

    for directory in _candidate_secret_dirs():
        if not directory.is_dir():
            continue

        for file_path in sorted(directory.iterdir()):
            if not file_path.is_file():
                continue

            env_name = file_path.stem.upper()
            env_name = "".join(c if c.isalnum() or c == "_" else "_" for c in env_name)

            if not env_name or env_name in os.environ:
                continue

            try:
                file_size = file_path.stat().st_size
                if file_size > MAX_ENV_VAR_SIZE:
                    logger.warning(
                        f"Secret file {file_path.name} is too large ({file_size} bytes) to load as environment variable"
                    )
                    continue
                value = file_path.read_text(encoding="utf-8").strip()
            except OSError as exc:
                logger.warning(f"Unable to read secret file {file_path}: {exc}")
                continue

            if not value:
                continue

            os.environ[env_name] = value
            logger.debug(f"Loaded secret {env_name} from {file_path.name}")

        break

    _SECRETS_LOADED = True


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variable placeholders in text.

    Supports formats:
    - ${VAR_NAME} - required variable (raises error if missing)
    - ${VAR_NAME:-default} - optional with default value
    - ${VAR_NAME:?error_message} - required with custom error message
    """

    _load_secret_files_into_env()

    def replacer(match: re.Match[str]) -> str:
        var_expr = match.group(1)

        if ":-" in var_expr:
            var_name, default = var_expr.split(":-", 1)
            return os.getenv(var_name, default)

        elif ":?" in var_expr:
            var_name, error_msg = var_expr.split(":?", 1)
            value = os.getenv(var_name)
            if value is None:
                raise ValueError(f"Required environment variable {var_name}: {error_msg}")
            return value

        else:
            value = os.getenv(var_expr)
            if value is None:
                raise ValueError(f"Required environment variable {var_expr} not set")
            return value

    pattern = r"\$\{([^}]+)\}"
    return re.sub(pattern, replacer, text)
