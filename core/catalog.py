"""Track discovery: an immutable, index-stable list of playable files."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union, overload

from core.exceptions import CatalogError, DiscoveryWarning
from core.logging import get_logger

logger = get_logger(__name__)


DEFAULT_EXTENSIONS = ('mp3',)

TrackPredicate = Callable[[Path], bool]


@dataclass(frozen=True)
class Track:
    """A playable file found during discovery."""

    path: Path

    @property
    def name(self) -> str:
        """Display name shown in the track list."""
        return self.path.name


def extension_predicate(extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> TrackPredicate:
    """
    Build a predicate accepting files by extension.

    Matching is exact: ``mp3`` accepts ``song.mp3`` but not ``SONG.MP3``.

    Args:
        extensions: Extensions with or without a leading dot

    Returns:
        Callable taking a path and returning True for playable files
    """
    suffixes = frozenset('.' + ext.lstrip('.') for ext in extensions if ext.strip('.'))

    def accepts(path: Path) -> bool:
        return path.suffix in suffixes

    return accepts


class Catalog(Sequence[Track]):
    """
    Ordered, read-only sequence of tracks.

    Indices never change after construction; the playback session refers
    to the loaded track by index.
    """

    def __init__(self, root: Path, tracks: Iterable[Track],
                 warnings: Iterable[DiscoveryWarning] = ()):
        self._root = root
        self._tracks: Tuple[Track, ...] = tuple(tracks)
        self._warnings: Tuple[DiscoveryWarning, ...] = tuple(warnings)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def warnings(self) -> Tuple[DiscoveryWarning, ...]:
        """Subtrees skipped during discovery."""
        return self._warnings

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(track.name for track in self._tracks)

    @overload
    def __getitem__(self, index: int) -> Track: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[Track]: ...

    def __getitem__(self, index: Union[int, slice]) -> Union[Track, Sequence[Track]]:
        return self._tracks[index]

    def __len__(self) -> int:
        return len(self._tracks)

    def __iter__(self) -> Iterator[Track]:
        return iter(self._tracks)

    def is_valid_index(self, index: int) -> bool:
        return 0 <= index < len(self._tracks)

    def __repr__(self) -> str:
        return f"Catalog(root={str(self._root)!r}, tracks={len(self._tracks)})"


def build_catalog(root: Union[str, Path], predicate: Optional[TrackPredicate] = None,
                  sort: bool = True) -> Catalog:
    """
    Recursively discover playable files under ``root``.

    Unreadable subdirectories are skipped and recorded as warnings on the
    returned catalog. Only a failure to read ``root`` itself is fatal.

    Args:
        root: Directory to scan
        predicate: File filter (defaults to ``.mp3`` files)
        sort: Order tracks by path; otherwise keep filesystem walk order

    Returns:
        Catalog of discovered tracks

    Raises:
        CatalogError: If ``root`` is missing, not a directory or unreadable
    """
    root = Path(root)
    if predicate is None:
        predicate = extension_predicate()

    try:
        with os.scandir(root):
            pass
    except OSError as e:
        raise CatalogError(root, e) from e

    warnings: List[DiscoveryWarning] = []

    def on_walk_error(error: OSError) -> None:
        path = Path(error.filename) if error.filename else root
        warning = DiscoveryWarning(path, error)
        logger.warning("%s", warning)
        warnings.append(warning)

    paths: List[Path] = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=on_walk_error):
        directory = Path(dirpath)
        for filename in filenames:
            file_path = directory / filename
            if not predicate(file_path):
                continue
            try:
                if not file_path.is_file():
                    continue
            except OSError as e:
                warning = DiscoveryWarning(file_path, e)
                logger.warning("%s", warning)
                warnings.append(warning)
                continue
            paths.append(file_path)

    if sort:
        paths.sort()

    catalog = Catalog(root, (Track(path) for path in paths), warnings)
    logger.info("Discovered %d tracks under %s (%d skipped)", len(catalog), root, len(warnings))
    return catalog
