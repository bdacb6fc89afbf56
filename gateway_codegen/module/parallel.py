"""Worker-pool helpers shared by discovery, emission and the hooks."""

import concurrent.futures
import os
from typing import Callable, Iterable, List, Optional, Tuple

from gateway_codegen.gen_logging import get_logger

logger = get_logger(__name__)

POOL_FACTOR = 2


def bounded_pool_size(factor: int = POOL_FACTOR) -> int:
    return max(1, factor * (os.cpu_count() or 1))


def run_parallel(
    func: Callable,
    items: Iterable,
    max_workers: Optional[int] = None,
) -> List[Tuple[object, object, Optional[BaseException]]]:
    """
    Run func over items on a thread pool and wait for every task.

    max_workers=None gives one worker per item. Returns
    `(item, result, error)` triples in input order; errors are returned, not
    raised, so the caller decides how to aggregate them.
    """
    items = list(items)
    if not items:
        return []
    workers = max_workers or len(items)

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(func, item) for item in items]
        concurrent.futures.wait(futures)

    outcomes = []
    for item, future in zip(items, futures):
        error = future.exception()
        outcomes.append((item, None if error else future.result(), error))
    return outcomes


def raise_first(outcomes, describe: Callable = str) -> list:
    """
    Return the results of run_parallel, or raise the first error after
    logging every other one.
    """
    errors = [(item, error) for item, _, error in outcomes if error is not None]
    if errors:
        for item, error in errors[1:]:
            logger.error("Additional failure for %s: %s", describe(item), error)
        raise errors[0][1]
    return [result for _, result, _ in outcomes]
