"""End-to-end tests for the prompt-comment workflow against an in-memory platform."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from src.generation import ProviderInvoker
from src.parsing import Attachment, AttachmentError
from src.workflows import WorkflowConfig, WorkflowSetupError, run_prompt_comment
from tests.workflows.utils import FakePlatform, config_comment, echo_session


@pytest.fixture
def platform() -> FakePlatform:
    platform = FakePlatform()
    platform.add_issue(1, "Provider config", ["api"])
    platform.add_issue_comment(
        1, config_comment("model-a", "https://a.example.com/chat", "ka"),
        created_at="2025-01-01T00:00:00Z",
    )
    platform.add_issue_comment(
        1, config_comment("model-b", "https://b.example.com/chat", "kb"),
        created_at="2025-01-02T00:00:00Z",
    )
    platform.add_issue(5, "Daily notes", ["prompt", "comment"])
    return platform


@pytest.fixture
def config() -> WorkflowConfig:
    return WorkflowConfig()


def _invoker(**kwargs) -> ProviderInvoker:
    return ProviderInvoker(session=echo_session(**kwargs))


class TestPromptComment:
    def test_posts_answer_to_new_discussion(
        self, platform: FakePlatform, config: WorkflowConfig
    ) -> None:
        prompt = platform.add_issue_comment(5, "SummaryPrompt: hello world")
        chatter = platform.add_issue_comment(5, "Thanks, looks good")
        done = platform.add_issue_comment(5, "SummaryPrompt: old", thumbs_down=1)

        report = run_prompt_comment(platform, _invoker(), config)

        assert (report.processed, report.posted, report.skipped, report.failed) == (1, 1, 2, 0)
        assert [d.title for d in platform.discussions] == ["Daily notes"]
        assert platform.discussions[0].category_name == "General"
        assert platform.posted == [(platform.discussions[0].id, "answer to: hello world")]
        assert platform.issue_marked(prompt)
        assert not platform.issue_marked(chatter)
        assert platform.issue_marked(done)

    def test_failover_reaches_second_provider(
        self, platform: FakePlatform, config: WorkflowConfig
    ) -> None:
        platform.add_issue_comment(5, "SummaryPrompt: hello")
        session = echo_session(failing_endpoints={"https://a.example.com/chat"})

        report = run_prompt_comment(platform, ProviderInvoker(session=session), config)

        assert report.posted == 1
        urls = [c.args[0] for c in session.post.call_args_list]
        assert urls == ["https://a.example.com/chat", "https://b.example.com/chat"]

    def test_reuses_existing_discussion(
        self, platform: FakePlatform, config: WorkflowConfig
    ) -> None:
        existing = platform.add_discussion(42, "Daily notes")
        platform.add_issue_comment(5, "SummaryPrompt: one")
        platform.add_issue_comment(5, "ReviewPrompt: two")

        report = run_prompt_comment(platform, _invoker(), config)

        assert report.posted == 2
        assert len(platform.discussions) == 1
        assert [discussion_id for discussion_id, _ in platform.posted] == [existing.id] * 2

    def test_second_run_does_not_repost(
        self, platform: FakePlatform, config: WorkflowConfig
    ) -> None:
        platform.add_issue_comment(5, "SummaryPrompt: hello")

        run_prompt_comment(platform, _invoker(), config)
        second = run_prompt_comment(platform, _invoker(), config)

        assert second.posted == 0
        assert second.skipped == 1
        assert len(platform.posted) == 1

    def test_failed_marker_reposts_next_run(
        self, platform: FakePlatform, config: WorkflowConfig
    ) -> None:
        platform.add_issue_comment(5, "SummaryPrompt: hello")
        platform.fail_marks = True

        first = run_prompt_comment(platform, _invoker(), config)
        second = run_prompt_comment(platform, _invoker(), config)

        assert first.unmarked == 1
        assert second.posted == 1
        assert len(platform.posted) == 2

    def test_provider_failure_leaves_comment_unmarked(
        self, platform: FakePlatform, config: WorkflowConfig
    ) -> None:
        broken = platform.add_issue_comment(5, "SummaryPrompt: boom")
        fine = platform.add_issue_comment(5, "SummaryPrompt: fine")

        report = run_prompt_comment(platform, _invoker(failing_marker="boom"), config)

        assert report.failed == 1
        assert report.posted == 1
        assert not platform.issue_marked(broken)
        assert platform.issue_marked(fine)

    def test_missing_category_is_item_failure(self, config: WorkflowConfig) -> None:
        platform = FakePlatform(categories=())
        platform.add_issue(1, "Provider config", ["api"])
        platform.add_issue_comment(1, config_comment("m", "https://a", "k"))
        platform.add_issue(5, "Daily notes", ["prompt", "comment"])
        prompt = platform.add_issue_comment(5, "SummaryPrompt: hello")

        report = run_prompt_comment(platform, _invoker(), config)

        assert report.failed == 1
        assert report.posted == 0
        assert not platform.issue_marked(prompt)

    def test_attachment_passed_to_provider(
        self, platform: FakePlatform, config: WorkflowConfig
    ) -> None:
        platform.add_issue_comment(
            5, "SummaryPrompt: summarise [notes.txt](https://example.com/files/notes.txt)"
        )
        requested: list[tuple[str, str]] = []

        def loader(url: str, label: str) -> Attachment:
            requested.append((url, label))
            return Attachment(data=b"attached body", mime_type="text/plain", filename=label)

        session = echo_session()
        report = run_prompt_comment(
            platform, ProviderInvoker(session=session), config, attachment_loader=loader
        )

        assert report.posted == 1
        assert requested == [("https://example.com/files/notes.txt", "notes.txt")]
        content = session.post.call_args.kwargs["json"]["messages"][0]["content"]
        assert content.endswith("[notes.txt]\nattached body")

    def test_attachment_failure_is_item_failure(
        self, platform: FakePlatform, config: WorkflowConfig
    ) -> None:
        platform.add_issue_comment(5, "SummaryPrompt: see [a.pdf](https://example.com/a.pdf)")

        def loader(url: str, label: str) -> Attachment:
            raise AttachmentError("404 Not Found")

        report = run_prompt_comment(platform, _invoker(), config, attachment_loader=loader)

        assert report.failed == 1
        assert platform.posted == []

    @patch("src.workflows.prompt_comment.download_attachment")
    def test_default_download_is_authenticated(
        self, mock_download: MagicMock, platform: FakePlatform
    ) -> None:
        platform.add_issue_comment(
            5, "SummaryPrompt: read [scan.png](https://github.com/user-attachments/assets/1)"
        )
        mock_download.return_value = Attachment(
            data=b"\x89PNG", mime_type="image/png", filename="scan.png"
        )

        report = run_prompt_comment(
            platform, _invoker(), WorkflowConfig(request_timeout=12), token="gh-token"
        )

        assert report.posted == 1
        mock_download.assert_called_once_with(
            "https://github.com/user-attachments/assets/1",
            label="scan.png",
            token="gh-token",
            timeout=12,
        )


class TestPromptCommentSetup:
    def test_missing_config_issue(self, config: WorkflowConfig) -> None:
        platform = FakePlatform()
        platform.add_issue(5, "Daily notes", ["prompt", "comment"])

        with pytest.raises(WorkflowSetupError, match="No open issue labeled api"):
            run_prompt_comment(platform, _invoker(), config)

    def test_rejected_configs_are_ignored(self, config: WorkflowConfig) -> None:
        platform = FakePlatform()
        platform.add_issue(1, "Provider config", ["api"])
        platform.add_issue_comment(1, config_comment("m", "https://a", "k"), thumbs_down=1)
        platform.add_issue_comment(1, "name: incomplete")

        with pytest.raises(WorkflowSetupError, match="no complete provider configuration"):
            run_prompt_comment(platform, _invoker(), config)
