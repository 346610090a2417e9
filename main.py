"""
FeedbackLens - User Feedback Analysis

CLI entry point for ingesting, analyzing, summarizing and reporting feedback.
"""

import argparse
import json
import logging
import sys

import config.settings as settings
from config.settings import Settings
from feedbacklens.agents.classifier import ClassifierGateway
from feedbacklens.models.feedback import FeedbackValidationError
from feedbacklens.orchestrator import (
    ConfigurationError,
    FeedbackNotFoundError,
    FeedbackPipeline,
)
from feedbacklens.utils.storage import SQLiteFeedbackStore, StoreError
from feedbacklens.utils.transport import MailChannelsEmailSender, SlackWebhookSender


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler("feedbacklens.log")
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="FeedbackLens - LLM-assisted user feedback analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Load a CSV export of feedback
  python main.py ingest --csv data/nova_search_multisource_feedback.csv

  # Analyze up to 50 pending items
  python main.py analyze --pending --limit 50

  # Analyze a single item
  python main.py analyze --id 42

  # Print the summary as JSON
  python main.py summary

  # Send digests
  python main.py notify slack
  python main.py notify email --date 2024-07-01

Note: Set GOOGLE_API_KEY before running `analyze`.
        """
    )

    parser.add_argument(
        "--db-path",
        help="SQLite database file path (default: FEEDBACKLENS_DB_PATH or data/feedback.db)"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: LOG_LEVEL or {settings.LOG_LEVEL})"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest feedback")
    ingest_source = ingest.add_mutually_exclusive_group(required=True)
    ingest_source.add_argument("--csv", help="CSV file to ingest")
    ingest_source.add_argument("--json", help="Single feedback payload as a JSON string")

    analyze = subparsers.add_parser("analyze", help="Analyze feedback")
    analyze_target = analyze.add_mutually_exclusive_group(required=True)
    analyze_target.add_argument("--pending", action="store_true", help="Analyze pending items")
    analyze_target.add_argument("--id", type=int, help="Analyze one item by id")
    analyze.add_argument(
        "--limit",
        type=int,
        default=settings.DEFAULT_PENDING_LIMIT,
        help=f"Maximum pending items (default: {settings.DEFAULT_PENDING_LIMIT})"
    )

    subparsers.add_parser("summary", help="Print summary JSON")

    notify = subparsers.add_parser("notify", help="Send a digest")
    notify.add_argument("channel", choices=["slack", "email"])
    notify.add_argument("--date", help="Report date for email (YYYY-MM-DD, default: today)")

    return parser


def build_pipeline(config: Settings, with_classifier: bool) -> FeedbackPipeline:
    """Wire the pipeline from settings."""
    store = SQLiteFeedbackStore(config.database_path)

    classifier = None
    if with_classifier:
        classifier = ClassifierGateway(
            api_key=config.google_api_key,
            model_name=config.classifier_model,
            temperature=config.llm_temperature,
            max_retries=config.classifier_max_retries
        )

    chat_sender = None
    if config.slack_webhook_url:
        chat_sender = SlackWebhookSender(
            config.slack_webhook_url,
            timeout_seconds=config.http_timeout_seconds
        )

    email_sender = None
    if config.mailchannels_api_key and config.report_from:
        email_sender = MailChannelsEmailSender(
            api_key=config.mailchannels_api_key,
            from_address=config.report_from,
            from_name=config.report_from_name,
            timeout_seconds=config.http_timeout_seconds
        )

    return FeedbackPipeline(
        settings=config,
        store=store,
        classifier=classifier,
        chat_sender=chat_sender,
        email_sender=email_sender
    )


def run_command(args, pipeline: FeedbackPipeline) -> dict:
    """Execute one CLI command and return its JSON-serializable result."""
    if args.command == "ingest":
        if args.csv:
            report = pipeline.ingestion_agent.ingest_csv(args.csv)
            return {
                "success": report.success_count,
                "errors": report.error_count,
                "error_details": report.errors,
            }
        return {"id": pipeline.submit_feedback(json.loads(args.json))}

    if args.command == "analyze":
        if args.pending:
            return pipeline.analyze_pending(args.limit).to_dict()
        return pipeline.analyze_feedback(args.id).to_dict()

    if args.command == "summary":
        return pipeline.compute_summary().to_dict()

    if args.command == "notify":
        if args.channel == "slack":
            return {"sent": pipeline.send_chat_digest()}
        return {"sent": pipeline.send_email_digest(report_date=args.date)}

    raise ValueError(f"Unknown command: {args.command}")


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = Settings.from_env()
    if args.db_path:
        config.database_path = args.db_path
    if args.log_level:
        config.log_level = args.log_level

    setup_logging(config.log_level)
    logger = logging.getLogger(__name__)

    # Only analysis talks to the model
    needs_classifier = args.command == "analyze"
    if needs_classifier and not config.google_api_key:
        logger.error(
            "GOOGLE_API_KEY environment variable not set. "
            "Please set it before running analysis."
        )
        sys.exit(1)

    try:
        pipeline = build_pipeline(config, with_classifier=needs_classifier)
        result = run_command(args, pipeline)
        print(json.dumps(result, indent=2))
        sys.exit(0)

    except (FeedbackValidationError, FeedbackNotFoundError, ConfigurationError) as e:
        logger.error(f"{args.command} failed: {e}")
        sys.exit(1)

    except StoreError as e:
        logger.error(f"Store error during {args.command}: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(1)

    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        print("Check feedbacklens.log for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
