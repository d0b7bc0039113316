"""
Tests for the text interface and command-line entry point.
"""

from pathlib import Path

import pytest

from interview_guide.io.text_interface import TextInterface, read_resume_file
from interview_guide.main import build_parser
from interview_guide.sessions import SessionLifecycle, SessionStatus


class ScriptedInterface(TextInterface):
    """TextInterface fed from a list of lines instead of stdin."""

    def __init__(self, lifecycle: SessionLifecycle, lines: list[str], **kwargs) -> None:
        super().__init__(lifecycle, resume_text="resume", **kwargs)
        self._lines = list(lines)
        self.messages: list[str] = []

    async def send_message(self, message: str) -> None:
        self.messages.append(message)

    async def receive_input(self) -> str:
        return self._lines.pop(0) if self._lines else "exit"


class TestTextInterface:
    """Tests for TextInterface.run."""

    @pytest.mark.asyncio
    async def test_full_run_generates_report(self, lifecycle: SessionLifecycle, gateway, capsys) -> None:
        interface = ScriptedInterface(lifecycle, ["a", "", "b", "c"], question_count=3, subject_id="resume-1")

        await interface.run()

        out = capsys.readouterr().out
        assert "Overall Score: 80/100" in out
        assert [m for m in interface.messages if m.startswith("Question")] == [
            "Question 1/3 [Project Experience]: Question 0",
            "Question 2/3 [Databases]: Question 1",
            "Question 2/3 [Databases]: Question 1",
            "Question 3/3 [Concurrency]: Question 2",
        ]
        (stored,) = gateway.sessions.values()
        assert stored.status == SessionStatus.EVALUATED

    @pytest.mark.asyncio
    async def test_save_then_quit_leaves_session_resumable(self, lifecycle: SessionLifecycle, capsys) -> None:
        first = ScriptedInterface(lifecycle, ["a", "/save draft b", "quit"], question_count=3, subject_id="resume-1")
        await first.run()
        assert "Draft saved." in capsys.readouterr().out

        second = ScriptedInterface(lifecycle, ["/end"], question_count=3, subject_id="resume-1")
        await second.run()

        out = capsys.readouterr().out
        assert "Resuming session" in out
        assert "(Saved draft: draft b)" in second.messages
        assert "Answer: (no answer)" in out

    @pytest.mark.asyncio
    async def test_end_immediately(self, lifecycle: SessionLifecycle, evaluator, capsys) -> None:
        await ScriptedInterface(lifecycle, ["/end"], question_count=2).run()

        assert "Overall Score: 0/100" in capsys.readouterr().out
        assert len(evaluator.calls) == 1


class TestCommandLine:
    """Tests for argument parsing and resume loading."""

    def test_parser_defaults(self) -> None:
        args = build_parser().parse_args(["--resume-file", "cv.txt"])

        assert args.resume_file == "cv.txt"
        assert args.questions is None
        assert args.subject_id is None
        assert args.database_url is None

    def test_parser_options(self) -> None:
        args = build_parser().parse_args(
            ["--resume-file", "cv.txt", "--questions", "4", "--subject-id", "resume-9", "--database-url", "sqlite+aiosqlite://"]
        )

        assert args.questions == 4
        assert args.subject_id == "resume-9"
        assert args.database_url == "sqlite+aiosqlite://"

    def test_parser_requires_resume(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_read_resume_file(self, tmp_path: Path) -> None:
        path = tmp_path / "cv.txt"
        path.write_text("Senior engineer", encoding="utf-8")

        assert read_resume_file(f" {path} ") == "Senior engineer"

    def test_read_missing_resume_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            read_resume_file(str(tmp_path / "missing.txt"))
