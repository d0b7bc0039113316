"""
Text-based interview interface.

Provides a command-line interface for walking through a mock interview
via text input/output.
"""

import os
from abc import ABC, abstractmethod

from interview_guide.sessions.errors import AlreadyCompletedError
from interview_guide.sessions.lifecycle import SessionLifecycle
from interview_guide.sessions.schemas import InterviewReport, SessionSnapshot, SessionStatus

SAVE_COMMAND = "/save"
END_COMMAND = "/end"
QUIT_COMMANDS = ("quit", "exit")


class InterviewInterface(ABC):
    """Abstract base class for interview interfaces."""

    @abstractmethod
    async def run(self) -> None:
        """Run the interview interface."""
        ...

    @abstractmethod
    async def send_message(self, message: str) -> None:
        """
        Send a message to the user.

        Args:
            message: Message to display.
        """
        ...

    @abstractmethod
    async def receive_input(self) -> str:
        """
        Receive input from the user.

        Returns:
            User's input string.
        """
        ...


class TextInterface(InterviewInterface):
    """
    Command-line text interface for mock interviews.

    Answers are submitted line by line. ``/save <text>`` stores a draft
    without moving on, ``/end`` finishes early, and ``quit`` leaves the
    session unfinished so it can be resumed later.
    """

    def __init__(
        self,
        lifecycle: SessionLifecycle,
        resume_text: str,
        question_count: int | None = None,
        subject_id: str | None = None,
    ) -> None:
        """
        Initialize the text interface.

        Args:
            lifecycle: Session lifecycle to drive.
            resume_text: Resume text for the interview.
            question_count: Number of questions (uses config default if None).
            subject_id: Subject to resume/persist under, None for a throwaway session.
        """
        self._lifecycle = lifecycle
        self._resume_text = resume_text
        self._question_count = question_count
        self._subject_id = subject_id

    async def run(self) -> None:
        """Run the interactive interview session."""
        print("\n" + "=" * 60)
        print("Mock Interview")
        print("=" * 60 + "\n")

        snapshot = await self._lifecycle.create_or_resume(
            self._resume_text,
            question_count=self._question_count,
            subject_id=self._subject_id,
        )
        await self._describe_session(snapshot)

        while True:
            question = await self._lifecycle.get_current_question(snapshot.session_id)
            if question is None:
                break

            await self.send_message(
                f"Question {question.question_index + 1}/{snapshot.total_questions} "
                f"[{question.category}]: {question.question}"
            )
            if question.user_answer:
                await self.send_message(f"(Saved draft: {question.user_answer})")

            answer = await self.receive_input()
            command = answer.strip()

            if command.lower() in QUIT_COMMANDS:
                print(f"\nLeaving the interview. Resume later with session {snapshot.session_id}.")
                return
            if command == END_COMMAND:
                try:
                    await self._lifecycle.complete_early(snapshot.session_id)
                except AlreadyCompletedError:
                    pass
                break
            if command.startswith(SAVE_COMMAND):
                draft = command[len(SAVE_COMMAND):].strip()
                await self._lifecycle.save_answer(snapshot.session_id, question.question_index, draft)
                print("Draft saved.")
                continue
            if not command:
                continue

            result = await self._lifecycle.submit_answer(snapshot.session_id, question.question_index, answer)
            if not result.has_next:
                break

        print("\nGenerating your report...")
        report = await self._lifecycle.generate_report(snapshot.session_id)
        await self._display_report(report)

    async def send_message(self, message: str) -> None:
        """
        Display a message to the terminal.

        Args:
            message: Message to display.
        """
        print(f"\n{message}\n")

    async def receive_input(self) -> str:
        """
        Get input from the terminal.

        Returns:
            User's input string.
        """
        return await self._get_input("You: ")

    async def _get_input(self, prompt: str) -> str:
        try:
            return input(prompt)
        except EOFError:
            return "exit"

    async def _describe_session(self, snapshot: SessionSnapshot) -> None:
        if snapshot.status == SessionStatus.CREATED:
            print(f"Started session {snapshot.session_id} with {snapshot.total_questions} questions.")
        else:
            print(
                f"Resuming session {snapshot.session_id}: "
                f"{snapshot.current_index}/{snapshot.total_questions} answered."
            )
        print(f"Commands: '{SAVE_COMMAND} <text>' saves a draft, '{END_COMMAND}' finishes early, 'quit' leaves.")

    async def _display_report(self, report: InterviewReport) -> None:
        """
        Display the interview report.

        Args:
            report: Report to display.
        """
        print("\n" + "=" * 60)
        print("Interview Report")
        print("=" * 60)
        print(f"\nOverall Score: {report.overall_score}/100")

        if report.category_scores:
            print("\nCategory Scores:")
            for category in report.category_scores:
                print(f"  - {category.category}: {category.score} ({category.question_count} questions)")

        print("\nQuestion Details:")
        for detail in report.question_details:
            answer = detail.user_answer or "(no answer)"
            print(f"  [{detail.question_index + 1}] {detail.question}")
            print(f"      Answer: {answer}")
            print(f"      Score: {detail.score} - {detail.feedback}")

        if report.overall_feedback:
            print(f"\nFeedback: {report.overall_feedback}")
        if report.strengths:
            print("\nStrengths:")
            for item in report.strengths:
                print(f"  - {item}")
        if report.improvements:
            print("\nImprovements:")
            for item in report.improvements:
                print(f"  - {item}")

        print("\n" + "=" * 60)


def read_resume_file(file_path: str) -> str:
    """
    Read resume text from a file.

    Args:
        file_path: Path to a plain-text resume; ``~`` is expanded.

    Returns:
        The file's text.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = os.path.abspath(os.path.expanduser(file_path.strip()))
    if not os.path.exists(path):
        raise FileNotFoundError(f"Resume file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return f.read()
