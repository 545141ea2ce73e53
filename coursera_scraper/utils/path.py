"""
Utilities for deriving output paths from a leaf's position in the content tree.

The layout produced is::

    <content id>/Week <NN>/<NN> - <module name>/<NN> - <leaf name>

where every <NN> is a 1-based, two-digit, zero-padded ordinal.
"""

from pathlib import Path

from pathvalidate import sanitize_filename

VIDEO_LEAF_NAME = "Lecture video (720p).mp4"

# Leaves room for the ".part" suffix used while a transfer is in flight.
MAX_NAME_LENGTH = 250


def pad_number(number: int) -> str:
    """Zero-pads ``number`` to at least two digits ('01', '12', '103')."""
    return f"{number:02d}"


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


class PathNamer:
    """
    Maps (sequence number, hierarchy position) to a relative path.

    The result depends only on the arguments and on the ``sanitize`` flag chosen
    at construction, so calling it twice with the same inputs yields the same path.
    When ``sanitize`` is on, remote names are passed through
    ``pathvalidate.sanitize_filename`` for the running platform and every
    numbered name is capped at ``MAX_NAME_LENGTH`` characters; short, valid
    names are left untouched.
    """

    def __init__(self, sanitize: bool = True) -> None:
        self.sanitize = sanitize

    def _clean(self, name: str) -> str:
        if not self.sanitize:
            return name
        return sanitize_filename(name, platform="auto") or "untitled"

    def _numbered(self, number: int, name: str) -> str:
        numbered = f"{pad_number(number)} - {self._clean(name)}"
        if not self.sanitize:
            return numbered
        return sanitize_filename(numbered, platform="auto", max_len=MAX_NAME_LENGTH)

    def week_directory(self, content_id: str, week_index: int) -> Path:
        return Path(self._clean(content_id)) / f"Week {pad_number(week_index)}"

    def module_directory(
        self, content_id: str, week_index: int, module_index: int, module_name: str
    ) -> Path:
        module_dir = self._numbered(module_index, module_name)
        return self.week_directory(content_id, week_index) / module_dir

    def leaf_filename(self, sequence_number: int, leaf_name: str) -> str:
        return self._numbered(sequence_number, leaf_name)

    def leaf_path(
        self,
        content_id: str,
        week_index: int,
        module_index: int,
        module_name: str,
        sequence_number: int,
        leaf_name: str,
    ) -> Path:
        """Returns the relative destination path of a single leaf."""
        directory = self.module_directory(
            content_id, week_index, module_index, module_name
        )
        return directory / self.leaf_filename(sequence_number, leaf_name)

    def video_path(
        self,
        content_id: str,
        week_index: int,
        module_index: int,
        module_name: str,
        sequence_number: int,
    ) -> Path:
        return self.leaf_path(
            content_id,
            week_index,
            module_index,
            module_name,
            sequence_number,
            VIDEO_LEAF_NAME,
        )
