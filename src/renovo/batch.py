"""Batch orchestration of rename and resize operations.

Each helper walks the input list in order and returns one result per input
file, at the same position. A failure is recorded on its own item and never
stops the rest of the batch. Rename and resize are independent calls; running
both over the same files yields two unrelated result lists.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import RenovoError
from .io_utils import is_image_path, move_file
from .rename import apply_rules
from .resize import ResizeConfig, resize_image
from .results import RenameResult, ResizeResult, Status, summarize
from .rules import RenameRule

logger = logging.getLogger(__name__)


def _plan_rename(path: Path, rules: Sequence[RenameRule], index: int) -> RenameResult:
    path = Path(path)
    warnings: List[str] = []
    new_name = apply_rules(path.name, rules, index, warnings)
    return RenameResult(
        old_path=path,
        new_path=path.parent / new_name,
        old_name=path.name,
        new_name=new_name,
        warnings=warnings,
    )


def preview_rename(
    files: Sequence[Path], rules: Sequence[RenameRule]
) -> List[RenameResult]:
    """Compute the new names without touching the filesystem.

    Parameters
    ----------
    files
        Ordered file paths. A file's position is its sequence index.
    rules
        Ordered rule chain.

    Returns
    -------
    list
        One ``preview`` record per input file, in input order.
    """

    results: List[Optional[RenameResult]] = [None] * len(files)
    for index, path in enumerate(files):
        result = _plan_rename(path, rules, index)
        result.status = Status.PREVIEW
        results[index] = result
    return results


def batch_rename(
    files: Sequence[Path], rules: Sequence[RenameRule]
) -> List[RenameResult]:
    """Rename files on disk through a rule chain.

    Files whose computed name equals the current one are reported as
    ``success`` without any filesystem call.

    Parameters
    ----------
    files
        Ordered file paths.
    rules
        Ordered rule chain.

    Returns
    -------
    list
        One ``success`` or ``error`` record per input file, in input order.
    """

    results: List[Optional[RenameResult]] = [None] * len(files)
    for index, path in enumerate(files):
        result = _plan_rename(path, rules, index)
        if result.new_name != result.old_name:
            try:
                move_file(result.old_path, result.new_path)
            except OSError as exc:
                logger.warning("Rename failed for %s: %s", result.old_path, exc)
                result.status = Status.ERROR
                result.error = str(exc)
        results[index] = result

    logger.info("Rename finished: %s", summarize(results))
    return results


def _resize_one(path: Path, config: ResizeConfig) -> ResizeResult:
    path = Path(path)
    try:
        return resize_image(path, config)
    except RenovoError as exc:
        logger.warning("Resize failed for %s: %s", path, exc)
        result = exc.result or ResizeResult(old_path=path, old_name=path.name)
        result.old_path = path
        result.old_name = path.name
        result.status = Status.ERROR
        result.error = str(exc)
        return result


def resize_batch(
    files: Sequence[Path], config: ResizeConfig, images_only: bool = False
) -> List[ResizeResult]:
    """Resize every file with the same configuration.

    There is no preview mode: every successful item writes an output file.

    Parameters
    ----------
    files
        Ordered file paths.
    config
        Resize settings applied to each file.
    images_only
        Drop paths without a known image extension before processing. The
        result list then follows the filtered order.

    Returns
    -------
    list
        One ``success`` or ``error`` record per processed file, in order.
    """

    if images_only:
        files = [f for f in files if is_image_path(Path(f))]

    # One slot per item, filled by input position
    results: List[Optional[ResizeResult]] = [None] * len(files)
    for index, path in enumerate(files):
        results[index] = _resize_one(path, config)

    logger.info("Resize finished: %s", summarize(results))
    return results
