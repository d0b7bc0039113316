"""
Main entry point for the Interview Guide application.
"""

import argparse
import asyncio
import logging
import sys

from interview_guide.agents import InterviewEvaluator, QuestionGenerator
from interview_guide.config import get_settings
from interview_guide.db.gateway import SqlAlchemyPersistenceGateway
from interview_guide.io.text_interface import TextInterface, read_resume_file
from interview_guide.models.llm_client import LLMClient
from interview_guide.sessions.lifecycle import SessionLifecycle


def setup_logging() -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = argparse.ArgumentParser(prog="interview-guide")
    parser.add_argument(
        "--resume-file",
        required=True,
        help="Path to a plain-text resume",
    )
    parser.add_argument(
        "--questions",
        type=int,
        default=None,
        help="Number of questions (defaults to DEFAULT_QUESTION_COUNT)",
    )
    parser.add_argument(
        "--subject-id",
        default=None,
        help="Resume identifier; enables persistence and resuming unfinished interviews",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL for this run",
    )
    return parser


async def run_interview(argv: list[str] | None = None) -> None:
    """
    Run an interactive mock interview.

    This is the main async entry point that initializes all components
    and runs the interview loop.
    """
    settings = get_settings()
    logger = logging.getLogger(__name__)
    args = build_parser().parse_args(argv)

    logger.info("Initializing Interview Guide...")
    logger.debug(f"Using LLM model: {settings.llm_model_name}")

    resume_text = read_resume_file(args.resume_file)

    llm_client = LLMClient()
    persistence: SqlAlchemyPersistenceGateway | None = None
    if args.subject_id:
        persistence = SqlAlchemyPersistenceGateway(database_url=args.database_url)
        await persistence.init_schema()

    lifecycle = SessionLifecycle(
        question_generator=QuestionGenerator(llm_client=llm_client),
        evaluator=InterviewEvaluator(llm_client=llm_client),
        persistence=persistence,
    )
    interface = TextInterface(
        lifecycle,
        resume_text=resume_text,
        question_count=args.questions,
        subject_id=args.subject_id,
    )

    try:
        await interface.run()
    finally:
        await llm_client.close()
        if persistence is not None:
            await persistence.close()


def main() -> None:
    """Main entry point for the application."""
    setup_logging()

    try:
        asyncio.run(run_interview(sys.argv[1:]))
    except KeyboardInterrupt:
        print("\nInterview session terminated by user.")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Application error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
