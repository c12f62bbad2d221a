"""
Command-line entry point for composer module.

    python -m modules.composer.main manifest.json [--output-dir DIR] [--mock]
        [--preset NAME] [--max-parallel N] [--publish]

The manifest is the JSON form of the composer inputs. The ComposerOutput is
printed as JSON on success; on failure the error kind and stage go to stderr
and the exit code is 1.
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as ModelValidationError

from shared.errors import PipelineError, PublishError
from shared.models.asset import GeneratedAsset
from shared.models.audio import AudioResult
from shared.models.overlay import PRESETS, TextOverlayConfig, get_text_overlay_config
from shared.models.script import Script

from .process import process
from .publisher import StoragePublisher


class CompositionManifest(BaseModel):
    """Everything needed to compose one content item."""

    content_id: str = Field(min_length=1)
    script: Script
    assets: List[GeneratedAsset]
    audio: AudioResult
    text_overlay: Optional[TextOverlayConfig] = None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compose a short-form video from a manifest")
    parser.add_argument("manifest", help="Path to manifest JSON (content_id, script, assets, audio)")
    parser.add_argument("--output-dir", help="Directory for final_video.mp4 (default: COMPOSER_OUTPUT_DIR/content_id)")
    parser.add_argument("--mock", action="store_true", default=None, help="Write placeholder files instead of running FFmpeg")
    parser.add_argument("--preset", choices=sorted(PRESETS), help="Text overlay preset (ignored if the manifest has text_overlay)")
    parser.add_argument("--max-parallel", type=int, help="Concurrent renders (default: COMPOSER_MAX_PARALLEL)")
    parser.add_argument("--publish", action="store_true", help="Upload the result to Supabase Storage")
    return parser


def load_manifest(path: str) -> CompositionManifest:
    return CompositionManifest.model_validate_json(Path(path).read_text(encoding="utf-8"))


async def run(args: argparse.Namespace) -> int:
    manifest = load_manifest(args.manifest)
    overlay_config = manifest.text_overlay or get_text_overlay_config(args.preset)
    publisher = StoragePublisher() if args.publish else None

    try:
        output = await process(
            manifest.content_id,
            manifest.script,
            manifest.assets,
            manifest.audio,
            overlay_config,
            output_dir=args.output_dir,
            mock_mode=args.mock,
            publisher=publisher,
            max_parallel=args.max_parallel
        )
    except PublishError as e:
        print(f"{e.kind} (stage={e.stage}): {e.message}", file=sys.stderr)
        if e.output is not None:
            print(e.output.model_dump_json(indent=2))
        return 1

    print(output.model_dump_json(indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except PipelineError as e:
        print(f"{e.kind} (stage={e.stage}): {e.message}", file=sys.stderr)
        return 1
    except (OSError, ModelValidationError) as e:
        print(f"Invalid manifest {args.manifest}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
