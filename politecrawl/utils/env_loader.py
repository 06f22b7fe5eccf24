from __future__ import annotations

from pathlib import Path
from typing import Union

from dotenv import find_dotenv, load_dotenv
from loguru import logger


PathLike = Union[str, Path]


def load_environment(dotenv_path: PathLike | None = None, *, override: bool = False) -> bool:
    """Load crawler settings from a .env file into ``os.environ``.

    Args:
        dotenv_path: Explicit path to the .env file. When omitted the nearest
            .env found from the current working directory upwards is used.
        override: Replace variables that are already set in the environment.

    Returns:
        True if a file was found and at least one variable was loaded.
    """

    path = dotenv_path if dotenv_path is not None else find_dotenv(usecwd=True)
    if not path or not Path(path).is_file():
        return False

    loaded = load_dotenv(dotenv_path=path, override=override)
    if loaded:
        logger.debug(f"Loaded environment from {path}")
    return loaded
