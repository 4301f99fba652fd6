"""
ReviewDash - Guest Review Management

CLI entry point for syncing Hostaway reviews, curating them for the
public website, and reporting per-property performance.
"""

import argparse
import json
import logging
import sys

from reviewdash.orchestrator import PipelineOrchestrator
from reviewdash.utils.filters import SORT_FIELDS, ReviewFilters, SortOptions
import config.settings as settings


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(settings.LOG_FILE)
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ReviewDash - Hostaway review management",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fetch, normalize and store reviews, then write the performance report
  python main.py sync

  # List approved reviews for one property
  python main.py reviews --property 2b-n1-a-29-shoreditch-heights --displayed

  # Approve a review for the public website
  python main.py approve 7453

Note: Set HOSTAWAY_ACCOUNT_ID and HOSTAWAY_API_KEY to use the live API;
      otherwise the bundled sample data is used.
        """
    )

    parser.add_argument(
        "--data-root",
        default=str(settings.DATA_ROOT),
        help=f"Data directory (default: {settings.DATA_ROOT})"
    )

    parser.add_argument(
        "--registry-path",
        default=str(settings.DATA_ROOT / "property_registry.json"),
        help="Path to property registry JSON"
    )

    parser.add_argument(
        "--output-root",
        default=str(settings.OUTPUT_ROOT),
        help=f"Report directory (default: {settings.OUTPUT_ROOT})"
    )

    parser.add_argument(
        "--name-policy",
        default=settings.PROPERTY_NAME_POLICY,
        choices=["slug", "listing"],
        help="Property display names: rebuilt from the ID or the stored listing name"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Fetch, normalize and store reviews")
    sync.add_argument("--no-report", action="store_true", help="Skip the performance CSV")

    reviews = subparsers.add_parser("reviews", help="Print stored reviews as JSON")
    reviews.add_argument("--property", dest="property_id", help="Property ID")
    reviews.add_argument("--channel", help="Channel (e.g. hostaway)")
    reviews.add_argument("--type", dest="review_type", choices=["host-to-guest", "guest-to-host", "all"])
    reviews.add_argument("--min-rating", type=float, help="Minimum rating (0-10)")
    reviews.add_argument("--search", help="Search guest name or review text")
    displayed = reviews.add_mutually_exclusive_group()
    displayed.add_argument("--displayed", dest="display_on_website", action="store_true", default=None,
                           help="Only reviews shown on the website")
    displayed.add_argument("--hidden", dest="display_on_website", action="store_false", default=None,
                           help="Only reviews not shown on the website")
    reviews.add_argument("--sort", default="submittedAt", choices=SORT_FIELDS)
    reviews.add_argument("--direction", default="desc", choices=["asc", "desc"])

    subparsers.add_parser("performance", help="Print per-property performance as JSON")

    stats = subparsers.add_parser("stats", help="Print dashboard statistics as JSON")
    stats.add_argument("--property", dest="property_id", help="Property ID")

    approve = subparsers.add_parser("approve", help="Show reviews on the public website")
    approve.add_argument("review_ids", nargs="+")

    hide = subparsers.add_parser("hide", help="Hide reviews from the public website")
    hide.add_argument("review_ids", nargs="+")

    return parser


def run_command(args, orchestrator: PipelineOrchestrator) -> int:
    """Execute a parsed command. Returns the process exit code."""
    if args.command == "sync":
        summary = orchestrator.sync(write_report=not args.no_report)
        print()
        print("=" * 60)
        print("✅ Sync completed successfully!")
        print("=" * 60)
        print(f"Source: {summary['source']}")
        print(f"Reviews: {summary['fetched']} fetched, {summary['placeholders']} placeholders")
        print(f"Stored: {summary['created']} created, {summary['updated']} updated")
        print(f"Properties: {summary['properties']}")
        if summary["report_path"]:
            print(f"Performance report: {summary['report_path']}")
        print("=" * 60)
        return 0

    if args.command == "reviews":
        filters = ReviewFilters(
            property_id=args.property_id,
            channel=args.channel,
            review_type=args.review_type,
            min_rating=args.min_rating,
            display_on_website=args.display_on_website,
            search=args.search
        )
        response = orchestrator.get_reviews_response(filters, SortOptions(args.sort, args.direction))
        print(json.dumps(response, indent=2))
        return 0

    if args.command == "performance":
        performances = orchestrator.get_property_performance()
        print(json.dumps([p.to_dict() for p in performances], indent=2))
        return 0

    if args.command == "stats":
        stats = orchestrator.get_statistics(ReviewFilters(property_id=args.property_id))
        print(json.dumps(stats.to_dict(), indent=2))
        return 0

    if args.command in ("approve", "hide"):
        display = args.command == "approve"
        result = orchestrator.batch_toggle_review_display(
            [{"reviewId": review_id, "display": display} for review_id in args.review_ids]
        )
        if not result["success"]:
            print(f"❌ {result['error']}")
            return 1
        print(f"Updated {len(args.review_ids)} review(s): displayOnWebsite={display}")
        return 0

    return 1


def main():
    """Main CLI entry point."""
    args = build_parser().parse_args()

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        orchestrator = PipelineOrchestrator(
            data_root=args.data_root,
            registry_path=args.registry_path,
            output_root=args.output_root,
            name_policy=args.name_policy
        )
        sys.exit(run_command(args, orchestrator))

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        print("\n⚠️  Interrupted")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Command failed: {e}", exc_info=True)
        print(f"\n❌ Command failed: {e}")
        print(f"Check {settings.LOG_FILE} for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
