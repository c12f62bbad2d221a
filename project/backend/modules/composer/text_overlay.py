"""
Text overlays for composer module.

Two independent jobs:
- render a standalone intro clip (title card) over a flat color or over a
  darkened frame sampled from the first segment;
- burn a caption label onto one segment clip for a configurable window.

Text reaches drawtext through textfile= (written beside the output clip) so
captions never need filtergraph escaping.
"""
from pathlib import Path
from typing import List, Optional, Tuple

from shared.errors import InternalConsistencyError
from shared.logging import get_logger
from shared.models.overlay import (
    IntroConfig,
    LabelTiming,
    SegmentLabelConfig,
    TextAnimation,
    TextOverlayConfig,
    TextPosition
)
from .utils import run_ffmpeg_command, video_encode_args
from .config import (
    FFMPEG_BINARY,
    FFMPEG_THREADS,
    INTRO_LINE_GAP,
    INTRO_SUBTEXT_OPACITY,
    OUTPUT_FPS,
    OUTPUT_HEIGHT,
    OUTPUT_WIDTH,
    TEXT_BOTTOM_MARGIN,
    TEXT_EDGE_MARGIN,
    TEXT_TOP_MARGIN,
    ffmpeg_timeout
)

logger = get_logger("composer.text_overlay")


def escape_filter_path(path: str) -> str:
    """
    Quote a file path for use as a filter option value.

    Backslashes become forward slashes and colons (Windows drive letters) are
    escaped for the option parser; the quotes protect the rest at graph level.
    """
    normalized = str(path).replace("\\", "/").replace(":", "\\:")
    return f"'{normalized}'"


def font_size_px(percentage: float, video_height: int = OUTPUT_HEIGHT) -> int:
    """Convert a font size given as percent of video height to pixels."""
    return round((percentage / 100) * video_height)


def title_case(text: str) -> str:
    """Capitalize the first letter of each space-separated word."""
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))


def position_coordinates(position: TextPosition) -> Tuple[str, str]:
    """Map a named anchor to drawtext x/y expressions."""
    x_for = {
        "left": str(TEXT_EDGE_MARGIN),
        "center": "(w-text_w)/2",
        "right": f"w-text_w-{TEXT_EDGE_MARGIN}",
    }
    y_for = {
        "top": str(TEXT_TOP_MARGIN),
        "center": "(h-text_h)/2",
        "bottom": f"h-text_h-{TEXT_BOTTOM_MARGIN}",
    }
    vertical, horizontal = _split_position(position)
    return x_for[horizontal], y_for[vertical]


def _split_position(position: TextPosition) -> Tuple[str, str]:
    if position == "center":
        return "center", "center"
    vertical, horizontal = position.split("-")
    return vertical, horizontal


def build_alpha_expression(
    animation: TextAnimation,
    fade_duration: float,
    window_end: float,
    window_start: float = 0.0
) -> str:
    """
    Build the drawtext alpha expression for a fade animation.

    Fades are measured from the edges of the display window, not the clip.
    """
    if animation == "none" or fade_duration <= 0:
        return "1"

    fade_in = f"min(max((t-{window_start:g})/{fade_duration:g},0),1)"
    fade_out = f"min(max(({window_end:g}-t)/{fade_duration:g},0),1)"

    if animation == "fade-in":
        return fade_in
    if animation == "fade-out":
        return fade_out
    return f"{fade_in}*{fade_out}"


def build_label_window(timing: LabelTiming, display_duration: float, segment_duration: float) -> Tuple[float, float]:
    """
    Seconds [start, end] within the segment during which the label shows.

    start: first display_duration seconds; end: last display_duration
    seconds; full-duration: the whole segment. Windows never leave the clip.
    """
    if timing == "full-duration":
        return 0.0, segment_duration
    shown = min(display_duration, segment_duration)
    if timing == "end":
        return max(segment_duration - shown, 0.0), segment_duration
    return 0.0, shown


def _drawtext(
    font_path: str,
    text_file: Path,
    color: str,
    size: int,
    x: str,
    y: str,
    alpha: str,
    enable: Optional[str] = None
) -> str:
    parts = [
        f"drawtext=fontfile={escape_filter_path(font_path)}",
        f"textfile={escape_filter_path(str(text_file))}",
        "expansion=none",
        f"fontcolor={color}",
        f"fontsize={size}",
        f"x={x}",
        f"y={y}",
    ]
    if enable:
        parts.append(f"enable='{enable}'")
    parts.append(f"alpha='{alpha}'")
    return ":".join(parts)


# ============================================================================
# Segment labels
# ============================================================================

def build_label_filter(
    text_file: Path,
    segment_duration: float,
    labels: SegmentLabelConfig,
    font_path: str
) -> str:
    """
    Build the drawtext filter that burns one caption onto a segment.

    Args:
        text_file: File holding the caption text
        segment_duration: Clip duration in seconds
        labels: Segment label configuration
        font_path: Resolved font file path

    Returns:
        Filter string for -vf
    """
    x, y = position_coordinates(labels.position)
    start, end = build_label_window(labels.timing, labels.display_duration, segment_duration)
    alpha = build_alpha_expression(labels.animation, labels.fade_duration, end, start)

    drawtext = _drawtext(
        font_path,
        text_file,
        labels.text_color,
        font_size_px(labels.font_size),
        x,
        y,
        alpha,
        enable=f"between(t,{start:g},{end:g})"
    )

    # Background pill only when a color is set and visible
    if labels.background_color and labels.background_opacity > 0:
        drawtext += (
            f":box=1:boxcolor={labels.background_color}@{labels.background_opacity:g}"
            f":boxborderw={labels.padding}"
        )

    return drawtext


async def burn_segment_label(
    input_path: Path,
    output_path: Path,
    label: str,
    segment_duration: float,
    overlay_config: TextOverlayConfig,
    content_id: Optional[str] = None,
    segment_index: Optional[int] = None
) -> Path:
    """
    Re-encode one segment clip with its caption burned in.

    Args:
        input_path: Motion clip for the segment
        output_path: Labeled clip to write (distinct from input_path)
        label: Caption text
        segment_duration: Clip duration in seconds
        overlay_config: Resolved overlay configuration
        content_id: Content ID for logging
        segment_index: Segment index for logging

    Returns:
        output_path
    """
    labels = overlay_config.segment_labels
    stage = f"label[{segment_index}]"

    text_file = output_path.with_suffix(".txt")
    text_file.write_text(label, encoding="utf-8")

    video_filter = build_label_filter(
        text_file,
        segment_duration,
        labels,
        overlay_config.font_path(labels.font)
    )

    ffmpeg_cmd = [
        FFMPEG_BINARY,
        "-y",
        "-threads", str(FFMPEG_THREADS),
        "-i", str(input_path),
        "-vf", video_filter,
        *video_encode_args(OUTPUT_FPS),
        str(output_path)
    ]

    logger.info(
        f"Burning label onto segment {segment_index}",
        extra={"content_id": content_id, "segment_index": segment_index, "label": label, "timing": labels.timing}
    )

    await run_ffmpeg_command(
        ffmpeg_cmd,
        content_id=content_id,
        timeout=ffmpeg_timeout(segment_duration),
        stage=stage
    )

    if not output_path.exists():
        raise InternalConsistencyError(
            f"Labeled clip not created: {output_path}",
            content_id=content_id,
            stage=stage
        )

    return output_path


# ============================================================================
# Intro clip
# ============================================================================

def _intro_lines(
    intro: IntroConfig,
    intro_text: str,
    intro_subtext: Optional[str]
) -> List[Tuple[str, int, str]]:
    """(text, pixel size, color) for each intro line, top to bottom."""
    lines = []
    if intro.title_prefix:
        lines.append((intro.title_prefix, font_size_px(intro.title_prefix_font_size), intro.text_color))
    lines.append((title_case(intro_text), font_size_px(intro.font_size), intro.text_color))
    if intro_subtext:
        lines.append((
            intro_subtext,
            font_size_px(intro.subtext_font_size),
            f"{intro.text_color}@{INTRO_SUBTEXT_OPACITY}"
        ))
    return lines


def build_intro_filter(
    text_files: List[Path],
    intro: IntroConfig,
    intro_text: str,
    intro_subtext: Optional[str],
    font_path: str,
    video_background: bool
) -> str:
    """
    Build the intro card filter chain.

    Lines are stacked as one block; the block is anchored vertically by the
    configured position and each line is aligned horizontally the same way.

    Args:
        text_files: One text file per line, in _intro_lines order
        intro: Intro configuration
        intro_text: Main phrase (title-cased on screen)
        intro_subtext: Optional secondary phrase
        font_path: Resolved font file path
        video_background: Input is a sampled frame rather than a color source

    Returns:
        Filter string for -vf
    """
    lines = _intro_lines(intro, intro_text, intro_subtext)
    if len(text_files) != len(lines):
        raise ValueError(f"Expected {len(lines)} intro text files, got {len(text_files)}")

    block_height = sum(size for _, size, _ in lines) + INTRO_LINE_GAP * (len(lines) - 1)
    vertical, horizontal = _split_position(intro.position)
    if vertical == "top":
        block_top = str(TEXT_TOP_MARGIN)
    elif vertical == "bottom":
        block_top = f"h-{block_height}-{TEXT_BOTTOM_MARGIN}"
    else:
        block_top = f"(h-{block_height})/2"
    x, _ = position_coordinates(f"center-{horizontal}" if horizontal != "center" else "center")

    alpha = build_alpha_expression(intro.animation, intro.fade_duration, intro.duration)

    filters = []
    if video_background:
        filters.append(
            f"scale={OUTPUT_WIDTH}:{OUTPUT_HEIGHT}:force_original_aspect_ratio=increase,"
            f"crop={OUTPUT_WIDTH}:{OUTPUT_HEIGHT}"
        )
        if intro.background_overlay_opacity > 0:
            filters.append(
                f"drawbox=x=0:y=0:w=iw:h=ih:color=black@{intro.background_overlay_opacity:g}:t=fill"
            )

    offset = 0
    for (_, size, color), text_file in zip(lines, text_files):
        y = f"{block_top}+{offset}" if offset else block_top
        filters.append(_drawtext(font_path, text_file, color, size, x, y, alpha))
        offset += size + INTRO_LINE_GAP

    filters.append("setsar=1")
    return ",".join(filters)


async def extract_background_frame(
    clip_path: Path,
    frame_path: Path,
    at_time: float,
    content_id: Optional[str] = None
) -> Path:
    """Grab one frame of a rendered clip to use as the intro background."""
    ffmpeg_cmd = [
        FFMPEG_BINARY,
        "-y",
        "-ss", f"{max(at_time, 0.0):.3f}",
        "-i", str(clip_path),
        "-frames:v", "1",
        str(frame_path)
    ]
    await run_ffmpeg_command(
        ffmpeg_cmd,
        content_id=content_id,
        timeout=ffmpeg_timeout(1.0),
        stage="intro"
    )
    if not frame_path.exists():
        raise InternalConsistencyError(
            f"Intro background frame not created: {frame_path}",
            content_id=content_id,
            stage="intro"
        )
    return frame_path


async def render_intro_clip(
    output_path: Path,
    intro_text: str,
    intro_subtext: Optional[str],
    overlay_config: TextOverlayConfig,
    background_frame: Optional[Path] = None,
    content_id: Optional[str] = None
) -> Path:
    """
    Render the standalone intro clip.

    Args:
        output_path: Clip to write
        intro_text: Main phrase
        intro_subtext: Optional secondary phrase
        overlay_config: Resolved overlay configuration (intro must be enabled)
        background_frame: Frame sampled from the first segment, or None for a flat color
        content_id: Content ID for logging

    Returns:
        output_path
    """
    intro = overlay_config.intro
    lines = _intro_lines(intro, intro_text, intro_subtext)

    text_files = []
    for n, (text, _, _) in enumerate(lines):
        text_file = output_path.with_name(f"{output_path.stem}_line_{n}.txt")
        text_file.write_text(text, encoding="utf-8")
        text_files.append(text_file)

    use_frame = intro.use_video_background and background_frame is not None
    video_filter = build_intro_filter(
        text_files,
        intro,
        intro_text,
        intro_subtext,
        overlay_config.font_path(intro.font),
        video_background=use_frame
    )

    if use_frame:
        input_args = ["-loop", "1", "-framerate", str(OUTPUT_FPS), "-i", str(background_frame)]
    else:
        color_source = (
            f"color=c={intro.background_color}:s={OUTPUT_WIDTH}x{OUTPUT_HEIGHT}"
            f":d={intro.duration:g}:r={OUTPUT_FPS}"
        )
        input_args = ["-f", "lavfi", "-i", color_source]

    ffmpeg_cmd = [
        FFMPEG_BINARY,
        "-y",
        "-threads", str(FFMPEG_THREADS),
        *input_args,
        "-vf", video_filter,
        "-t", f"{intro.duration:.3f}",
        *video_encode_args(OUTPUT_FPS),
        str(output_path)
    ]

    logger.info(
        f"Rendering intro clip ({intro.duration:.2f}s, {'video' if use_frame else 'color'} background)",
        extra={"content_id": content_id, "intro_text": intro_text}
    )

    await run_ffmpeg_command(
        ffmpeg_cmd,
        content_id=content_id,
        timeout=ffmpeg_timeout(intro.duration),
        stage="intro"
    )

    if not output_path.exists():
        raise InternalConsistencyError(
            f"Intro clip not created: {output_path}",
            content_id=content_id,
            stage="intro"
        )

    return output_path
