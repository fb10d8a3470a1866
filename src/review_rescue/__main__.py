import argparse
from importlib.metadata import PackageNotFoundError, version
import logging
import sys

from review_rescue.app import RescueApplication
from review_rescue.config import RescueConfig
from review_rescue.exceptions import (
    ConfigurationError,
    OperatorError,
    RescueException,
    SecurityError,
)
from review_rescue.security import SecurityValidator


def setup_logging(
    log_level: str = "INFO", log_format: str = "text", force: bool = False
) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        logging.basicConfig(
            level=level,
            format=(
                '{"time": "%(asctime)s", "level": "%(levelname)s", '
                '"message": "%(message)s"}'
            ),
            datefmt="%Y-%m-%d %H:%M:%S",
            force=force,
        )
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            force=force,
        )


def get_version() -> str:
    try:
        return version("review-rescue")
    except PackageNotFoundError:
        return "unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="review-rescue",
        description=(
            "Recover the comments of a GitHub pull request review that failed "
            "to submit and repost them as regular review comments"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=get_version(),
        help="show version",
    )
    parser.add_argument(
        "-t",
        "--token",
        type=str,
        help="GitHub token (can be also passed as GITHUB_TOKEN env variable)",
    )
    parser.add_argument(
        "-r",
        "--repo",
        type=str,
        help="GitHub repository (org/repo)",
    )
    parser.add_argument(
        "-p",
        "--pr",
        type=str,
        help="GitHub Pull Request number",
    )
    parser.add_argument(
        "--save",
        nargs="?",
        const="",
        metavar="SAVEFILE",
        help=(
            "Save comments into a file (defaults to org_repo_pr_reviewId.json, "
            "e.g. octocat_hello_123_123456.json). Saving is always enabled"
        ),
    )
    parser.add_argument(
        "--load",
        metavar="LOADFILE",
        help="Load comments from a file instead of fetching from GitHub",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        help="Path to a YAML settings file",
    )
    parser.add_argument(
        "--countdown",
        type=int,
        help="Seconds to wait before deleting the pending review (default: 10)",
    )
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Do not re-check the review state right before deleting it",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        help="GitHub API base URL (for GitHub Enterprise)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        choices=["json", "text"],
        help="Logging format",
    )
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    log_level = args.log_level or "INFO"
    log_format = args.log_format or "text"
    setup_logging(log_level, log_format)
    logger = logging.getLogger(__name__)

    try:
        config = RescueConfig.from_args(args)
        if (config.log_level, config.log_format) != (log_level, log_format):
            setup_logging(config.log_level, config.log_format, force=True)
        app = RescueApplication(config)
        result = app.run()
        if result.report.failed:
            logger.warning(
                f"{result.report.failed} comment(s) could not be posted, "
                f"progress saved to {result.snapshot_path}"
            )
        else:
            logger.info(
                f"All comments recovered, progress saved to {result.snapshot_path}"
            )

    except (ConfigurationError, SecurityError) as e:
        logger.error(f"Error: {SecurityValidator.sanitize_error_message(e)}")
        if e.cause is None:
            parser.print_help(sys.stderr)
        sys.exit(1)
    except OperatorError as e:
        logger.error(f"Error: {SecurityValidator.sanitize_error_message(e)}")
        sys.exit(1)
    except RescueException as e:
        logger.error(f"Error: {SecurityValidator.sanitize_error_message(e)}")
        if e.cause is not None:
            logger.error(
                f"Caused by: {SecurityValidator.sanitize_error_message(e.cause)}"
            )
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        sanitized_error = SecurityValidator.sanitize_error_message(e)
        logger.error(f"Unexpected error: {sanitized_error}")
        sys.exit(1)


if __name__ == "__main__":
    main()
