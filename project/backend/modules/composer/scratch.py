"""
Per-run scratch storage for composer module.

Every intermediate artifact of one composition run lives in one directory
keyed by content_id and addressed by segment index. The directory is removed
on every exit path.
"""
import shutil
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from shared.logging import get_logger

logger = get_logger("composer.scratch")


class ScratchArena:
    """Index-addressed scratch files for one run."""

    def __init__(self, root: Path):
        self.root = root

    def segment_clip(self, index: int) -> Path:
        return self.root / f"segment_{index:03d}.mp4"

    def labeled_clip(self, index: int) -> Path:
        return self.root / f"segment_{index:03d}_labeled.mp4"

    def intro_clip(self) -> Path:
        return self.root / "intro.mp4"

    def intro_background_frame(self) -> Path:
        return self.root / "intro_background.png"

    def concat_list(self) -> Path:
        return self.root / "concat_list.txt"

    def concatenated(self) -> Path:
        return self.root / "concatenated.mp4"

    def final_video(self) -> Path:
        return self.root / "final_video.mp4"

    def files(self):
        """Scratch files currently on disk."""
        if not self.root.exists():
            return []
        return sorted(p for p in self.root.iterdir() if p.is_file())

    def cleanup(self) -> None:
        shutil.rmtree(self.root, ignore_errors=True)


@asynccontextmanager
async def scratch_arena(content_id: str, base_dir: Optional[str] = None) -> AsyncIterator[ScratchArena]:
    """
    Context manager for a run's scratch arena with automatic cleanup.

    Args:
        content_id: Content ID, embedded in the directory name
        base_dir: Parent directory (system temp dir when None)

    Yields:
        ScratchArena rooted at a fresh, uniquely named directory
    """
    if base_dir:
        Path(base_dir).mkdir(parents=True, exist_ok=True)
    root = Path(tempfile.mkdtemp(prefix=f"composer_{content_id}_", dir=base_dir))
    arena = ScratchArena(root)
    logger.debug("Scratch arena created", extra={"scratch_dir": str(root)})
    try:
        yield arena
    finally:
        arena.cleanup()
        logger.debug("Scratch arena removed", extra={"scratch_dir": str(root)})
