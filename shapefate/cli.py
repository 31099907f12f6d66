"""Command-line interface for shapefate."""
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from shapefate.level import LevelMetadata
from shapefate.pipeline import LevelPipeline
from shapefate.types import LevelEditorError, MaskConfig, PipelineConfig


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="shapefate",
        description="Trace an image silhouette and cut it into puzzle pieces",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  shapefate cat.png -o level_016.json
  shapefate cat.png -o level_016.json --pieces 8 --seed 7
  shapefate cat.png --mask cat_mask.png --image-mode --export-pieces pieces/
        """,
    )

    parser.add_argument("input", help="Input image file path")

    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output level JSON path (default: <level-id>.json beside the input)",
    )

    parser.add_argument(
        "-n",
        "--pieces",
        type=int,
        default=5,
        help="Number of pieces to cut (default: 5)",
    )

    parser.add_argument(
        "-t",
        "--tolerance",
        type=float,
        default=50.0,
        help="Background tolerance 0-100; higher removes more background (default: 50)",
    )

    parser.add_argument(
        "--no-interior",
        action="store_true",
        help="Disable interior color sampling",
    )

    parser.add_argument(
        "--mask",
        default=None,
        help="Trace this mask image instead of detecting the subject",
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for repeatable piece cuts",
    )

    parser.add_argument("--level-id", default="level_016", help="Level id (default: level_016)")
    parser.add_argument("--world", type=int, default=1, help="World number (default: 1)")
    parser.add_argument("--difficulty", default="easy", help="Difficulty label (default: easy)")

    parser.add_argument(
        "--image-mode",
        action="store_true",
        help="Pieces show the source image; adds imageName and imageRect to the export",
    )

    parser.add_argument(
        "--export-pieces",
        default=None,
        metavar="DIR",
        help="Directory to save one PNG crop per piece",
    )

    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for CLI.

    Args:
        args: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if parsed.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(parsed.input)
    if parsed.output:
        output_path = Path(parsed.output)
    else:
        output_path = input_path.with_name(f"{parsed.level_id}.json")

    try:
        config = PipelineConfig(
            mask=MaskConfig(
                background_tolerance=parsed.tolerance,
                use_interior_sampling=not parsed.no_interior,
            ),
            piece_count=parsed.pieces,
            seed=parsed.seed,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    metadata = LevelMetadata(
        level_id=parsed.level_id,
        world=parsed.world,
        difficulty=parsed.difficulty,
        image_mode=parsed.image_mode,
    )

    try:
        print(f"Processing: {parsed.input}")
        print(f"  Pieces: {parsed.pieces}")
        print(f"  Tolerance: {parsed.tolerance}")

        result = LevelPipeline(config).process(
            input_path,
            output_path,
            mask_path=parsed.mask,
            metadata=metadata,
            pieces_dir=parsed.export_pieces,
        )

        print(f"  Silhouette: {len(result.silhouette)} points")
        print(f"  Created {len(result.pieces)} pieces (target {result.target_count})")
        if result.degraded:
            print(
                "Warning: could not reach the requested piece count; "
                "try fewer pieces or a simpler silhouette.",
                file=sys.stderr,
            )
        print(f"  Output saved: {result.output_path}")
        return 0

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except LevelEditorError as e:
        print(f"Error processing image: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
