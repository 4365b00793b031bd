"""Main module for the resize pipeline CLI."""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .core import (
    BatchProgress,
    PipelineSettings,
    ResizePipelineError,
    get_logger,
    load_options,
    set_debug_logging,
)
from .core.models import OUTPUT_FORMATS, RESIZE_ALGORITHMS, WatermarkPosition
from .core.storage import (
    create_s3_client,
    load_items_from_directory,
    load_items_from_s3,
    save_outcomes_to_directory,
    save_outcomes_to_s3,
)
from .factories import PipelineFactory
from .orchestrator import BatchReport


def build_parser() -> argparse.ArgumentParser:
    """
    Build the ``resize-pipeline`` argument parser.

    The "resize" command reads images from a directory or an S3 prefix,
    resizes them on the chosen path and writes the results back out.
    """
    parser = argparse.ArgumentParser(
        prog="resize-pipeline",
        description="Resize Pipeline - batch image resizing with local/remote routing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Resize a folder to 800px wide JPEGs
  resize-pipeline resize --source-dir photos --dest-dir out --width 800

  # Resize from S3 to WebP, using a remote service when it is worth it
  resize-pipeline resize --source-bucket my-source --dest-bucket my-dest \\
                         --width 1024 --format webp --remote-url https://example.org/api

  # Show version
  resize-pipeline version
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    resize_parser = subparsers.add_parser("resize", help="Resize a batch of images")

    source = resize_parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--source-dir", help="Directory to read images from")
    source.add_argument("--source-bucket", help="S3 bucket to read images from")
    resize_parser.add_argument("--source-prefix", default="", help="Source S3 prefix")

    dest = resize_parser.add_mutually_exclusive_group(required=True)
    dest.add_argument("--dest-dir", help="Directory to write resized images to")
    dest.add_argument("--dest-bucket", help="S3 bucket to write resized images to")
    resize_parser.add_argument("--dest-prefix", default="", help="Destination S3 prefix")
    resize_parser.add_argument(
        "--suffix", default="_resized", help="Suffix added to output file names"
    )

    resize_parser.add_argument("--width", type=int, default=None, help="Target width in pixels")
    resize_parser.add_argument("--height", type=int, default=None, help="Target height in pixels")
    resize_parser.add_argument(
        "--quality", type=float, default=90, help="Quality as 0.1-1.0 or 1-100 (default: 90)"
    )
    resize_parser.add_argument(
        "--format", dest="output_format", default="jpeg", choices=OUTPUT_FORMATS,
        help="Output format (default: jpeg)",
    )
    resize_parser.add_argument(
        "--algorithm", default="lanczos", choices=RESIZE_ALGORITHMS,
        help="Resampling algorithm (default: lanczos)",
    )
    resize_parser.add_argument(
        "--no-aspect-ratio", action="store_true",
        help="Stretch to exactly --width x --height",
    )
    resize_parser.add_argument("--background-color", default=None, help="Fill for transparent areas")
    resize_parser.add_argument("--watermark-text", default=None, help="Draw this text on every image")
    resize_parser.add_argument(
        "--watermark-position", default=WatermarkPosition.BOTTOM_RIGHT.value,
        choices=[p.value for p in WatermarkPosition],
    )
    resize_parser.add_argument("--watermark-opacity", type=float, default=0.7)
    resize_parser.add_argument(
        "--remote-url", default=None,
        help="Base URL of the remote resize service (overrides RESIZE_REMOTE_URL)",
    )
    resize_parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers.add_parser("version", help="Show version information")
    return parser


def options_from_args(args: argparse.Namespace):
    data = {
        "width": args.width,
        "height": args.height,
        "quality": args.quality,
        "output_format": args.output_format,
        "algorithm": args.algorithm,
        "maintain_aspect_ratio": not args.no_aspect_ratio,
        "background_color": args.background_color,
    }
    if args.watermark_text:
        data["watermark"] = {
            "text": args.watermark_text,
            "position": args.watermark_position,
            "opacity": args.watermark_opacity,
        }
    return load_options(data)


def log_progress(progress: BatchProgress) -> None:
    logger = get_logger("cli")
    if progress.warning:
        logger.warning(progress.warning)
    if progress.stage_label:
        logger.info(progress.stage_label)
        for clause in progress.reasoning:
            logger.info(f"  - {clause}")
    if progress.current_chunk is not None:
        logger.info(
            f"Progress: {progress.completed}/{progress.total} "
            f"({progress.percentage_completed}%)"
        )


def log_report(report: BatchReport) -> None:
    """Log the routing decision and analytics of a finished batch."""
    logger = get_logger("cli")
    analytics = report.analytics
    decision = report.decision

    logger.info("=" * 80)
    logger.info("RESIZE COMPLETED")
    logger.info("=" * 80)
    logger.info(
        f"Path: {report.path_used.value} "
        f"(remote score {decision.remote_score}, local score {decision.local_score})"
    )
    if report.fallback_reason:
        logger.info(f"Fell back to local processing: {report.fallback_reason}")
    logger.info(f"Files: {analytics.total_files}  Success rate: {analytics.success_rate}%")
    logger.info(
        f"{analytics.size_change_label}: {analytics.size_change_display} "
        f"({analytics.size_change_percentage_display})"
    )
    logger.info(f"  Original total:  {analytics.original_total_display}")
    logger.info(f"  Processed total: {analytics.processed_total_display}")
    logger.info(f"Quality impact: {analytics.quality_impact_label}")
    logger.info(
        f"Compression: avg {analytics.average_compression}%  "
        f"best {analytics.best_compression}%  worst {analytics.worst_compression}%"
    )
    logger.info(
        f"Time: {analytics.processing_time_display}  "
        f"{analytics.items_per_second} items/sec  "
        f"{analytics.megapixel_throughput} MP/sec"
    )
    for share in analytics.format_distribution:
        logger.info(f"  {share.type}: {share.count} ({share.percentage}%)")
    logger.info(f"Overall efficiency: {analytics.efficiency_label}")
    logger.info("=" * 80)


def run_resize(args: argparse.Namespace) -> Optional[BatchReport]:
    logger = get_logger("cli")
    options = options_from_args(args)
    settings = PipelineSettings.from_env(remote_url=args.remote_url)

    s3_client = None
    if args.source_bucket or args.dest_bucket:
        s3_client = create_s3_client()

    if args.source_bucket:
        items = load_items_from_s3(s3_client, args.source_bucket, args.source_prefix)
        source = f"s3://{args.source_bucket}/{args.source_prefix}"
    else:
        items = load_items_from_directory(args.source_dir)
        source = args.source_dir

    if not items:
        logger.warning(f"No images found in {source}. Nothing to do.")
        return None

    pipeline = PipelineFactory.create_pipeline(settings)
    report = pipeline.process_sync(items, options, on_progress=log_progress)

    if args.dest_bucket:
        save_outcomes_to_s3(
            s3_client, report.outcomes, args.dest_bucket, args.dest_prefix, args.suffix
        )
    else:
        save_outcomes_to_directory(report.outcomes, args.dest_dir, args.suffix)

    log_report(report)
    return report


def resize_command(args: argparse.Namespace) -> None:
    logger = get_logger("cli")
    if args.debug:
        set_debug_logging()

    try:
        run_resize(args)
    except KeyboardInterrupt:
        logger.warning("Processing interrupted by user.")
    except ResizePipelineError as e:
        logger.error(f"Resize failed: {e}")
        sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``resize-pipeline`` command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "resize":
        resize_command(args)

    elif args.command == "version":
        print("Resize Pipeline CLI")
        print(f"Version {__version__}")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
