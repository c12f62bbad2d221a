"""
Unit tests for per-run scratch arenas.
"""
import pytest

from modules.composer.scratch import ScratchArena, scratch_arena


def test_index_named_paths(tmp_path):
    arena = ScratchArena(tmp_path)

    assert arena.segment_clip(7).name == "segment_007.mp4"
    assert arena.labeled_clip(7).name == "segment_007_labeled.mp4"
    assert arena.intro_clip().name == "intro.mp4"
    assert arena.final_video().parent == tmp_path


@pytest.mark.asyncio
async def test_arena_unique_and_removed(tmp_path):
    async with scratch_arena("c1", str(tmp_path)) as first, scratch_arena("c1", str(tmp_path)) as second:
        assert first.root != second.root
        assert first.root.name.startswith("composer_c1_")
        first.segment_clip(0).write_bytes(b"clip")
        assert first.files() == [first.segment_clip(0)]

    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_arena_removed_on_error(tmp_path):
    with pytest.raises(RuntimeError):
        async with scratch_arena("c1", str(tmp_path)) as arena:
            arena.concat_list().write_text("file 'x'")
            raise RuntimeError("render failed")

    assert list(tmp_path.iterdir()) == []
