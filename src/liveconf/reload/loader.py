"""Initial configuration load with bounded retries.

Attempt 0 runs immediately. After each failure the loader waits and tries
again, growing the delay as ``delay += delay * attempt`` (with the 1-based
number of the attempt that just failed), so the default three retries wait
``base``, ``2 * base`` and ``6 * base``. When every attempt fails the
process must not start.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

from liveconf.config.environment import resolve_config_path
from liveconf.config.loadable import Loadable
from liveconf.errors import InitialLoadError

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=Loadable)

DEFAULT_BASE_DELAY = 1.0
DEFAULT_MAX_RETRIES = 3


async def load_initial(
    config_type: type[C],
    env_var: str,
    default_path: str | Path,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_retries: int = DEFAULT_MAX_RETRIES,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> C:
    """Produce the first valid configuration.

    Args:
        config_type: Loadable type to construct.
        env_var: Environment variable that may name the config path.
        default_path: Path used when ``env_var`` is not set.
        base_delay: Seconds to wait before the first retry.
        max_retries: Retries after the first attempt.
        sleep: Coroutine used for the waits.

    Returns:
        The loaded configuration, bound to its path.

    Raises:
        InitialLoadError: If every attempt failed.
    """
    path = resolve_config_path(env_var, default_path)
    delay = base_delay

    for attempt in range(max_retries + 1):
        config = config_type.default()
        config.bind_path(path)
        try:
            await asyncio.to_thread(config.reload)
        except Exception as e:
            logger.error(f"Failed to load config {path} (attempt {attempt}): {e}")
            if attempt == max_retries:
                break
            logger.info(f"Retrying config load in {delay:.2f}s")
            await sleep(delay)
            delay += delay * (attempt + 1)
            continue

        logger.info(f"Loaded config from {path}: {config!r}")
        return config

    logger.error(f"Giving up on config {path} after {max_retries + 1} attempts")
    raise InitialLoadError(path, max_retries + 1)


async def load_or_exit(
    config_type: type[C],
    env_var: str,
    default_path: str | Path,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_retries: int = DEFAULT_MAX_RETRIES,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> C:
    """Like ``load_initial``, but abort the process if loading fails."""
    try:
        return await load_initial(
            config_type,
            env_var,
            default_path,
            base_delay=base_delay,
            max_retries=max_retries,
            sleep=sleep,
        )
    except InitialLoadError as e:
        raise SystemExit(f"Fatal: {e}. Refusing to start without a valid configuration.") from e
