"""Set reconciliation between compiled artifacts and their sources.

Two directions are offered:

* :func:`find_unbound_artifacts` - ``.pex`` files whose ``.psc`` is gone;
* :func:`find_unbuilt_sources` - ``.psc`` files that were never compiled.

Both build a candidate set from one side sequentially, then list every folder
of the other side on its own thread. Listing threads never touch the set:
they push names into a bounded queue and a single owner thread applies the
removals. The driver joins the listing threads, closes the queue, joins the
owner and only then reads what is left.

Names are matched case-insensitively, but results carry the file names as
they are on disk.
"""

from __future__ import annotations

import os
import queue
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import cast

from papy.errors import PapyError, ScanError
from papy.scanner import ARTIFACT_SUFFIX, SOURCE_SUFFIX

_CLOSED = object()


def list_base_names(folder: Path, suffix: str) -> dict[str, str]:
    """Map lower-cased base name to real file name for files in *folder* ending in *suffix*."""
    try:
        with os.scandir(folder) as entries:
            names = sorted(entry.name for entry in entries if not entry.is_dir())
    except OSError as exc:
        raise ScanError(
            f"Cannot get directory entries for {folder}.",
            hint=str(exc),
            context={"operation": "reconcile", "folder": str(folder)},
        ) from exc
    suffix = suffix.lower()
    found: dict[str, str] = {}
    for name in names:
        key = name.lower()
        if key.endswith(suffix):
            found.setdefault(key[: -len(suffix)], name)
    return found


class _FolderLister(threading.Thread):
    def __init__(self, folder: Path, suffix: str, removals: queue.Queue[object]) -> None:
        super().__init__(name=f"papy-list-{folder.name}")
        self.folder = folder
        self.suffix = suffix
        self.removals = removals
        self.fault: Exception | None = None

    def run(self) -> None:
        try:
            keys = list_base_names(self.folder, self.suffix)
        except Exception as exc:
            self.fault = exc
            return
        for key in keys:
            self.removals.put(key)


class _SetOwner(threading.Thread):
    """Sole writer of the candidate set."""

    def __init__(self, candidates: dict[str, str], removals: queue.Queue[object]) -> None:
        super().__init__(name="papy-set-owner")
        self.remaining = candidates
        self.removals = removals

    def run(self) -> None:
        while True:
            key = self.removals.get()
            if key is _CLOSED:
                break
            self.remaining.pop(cast(str, key), None)


def reconcile(
    candidates: Mapping[str, str],
    folders: Sequence[Path],
    suffix: str,
) -> tuple[str, ...]:
    """Drop every candidate whose key is found in any of *folders*.

    *candidates* maps lower-cased base names to the file names reported back.
    """
    removals: queue.Queue[object] = queue.Queue(maxsize=max(len(folders), 1))
    owner = _SetOwner(dict(candidates), removals)
    owner.start()

    listers = [_FolderLister(folder, suffix, removals) for folder in folders]
    try:
        for lister in listers:
            lister.start()
    finally:
        for lister in listers:
            if lister.ident is not None:
                lister.join()
        removals.put(_CLOSED)
        owner.join()

    for lister in listers:
        if lister.fault is None:
            continue
        if isinstance(lister.fault, PapyError):
            raise lister.fault
        raise ScanError(
            f"Cannot list folder {lister.folder}.",
            hint=str(lister.fault),
            context={"operation": "reconcile", "folder": str(lister.folder)},
        ) from lister.fault
    return tuple(sorted(owner.remaining.values()))


def find_unbound_artifacts(output_folder: Path, source_folders: Sequence[Path]) -> tuple[str, ...]:
    """Artifact file names in *output_folder* with no source in any *source_folders*."""
    candidates = list_base_names(output_folder, ARTIFACT_SUFFIX)
    return reconcile(candidates, source_folders, SOURCE_SUFFIX)


def find_unbuilt_sources(
    source_folders: Sequence[Path],
    output_folders: Sequence[Path],
) -> tuple[str, ...]:
    """Source file names with no artifact in any of *output_folders*."""
    candidates: dict[str, str] = {}
    for folder in source_folders:
        for key, name in list_base_names(folder, SOURCE_SUFFIX).items():
            candidates.setdefault(key, name)
    return reconcile(candidates, output_folders, ARTIFACT_SUFFIX)
