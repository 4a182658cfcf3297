"""Tests for the review workflow stages."""

import operator
from unittest.mock import AsyncMock, call, patch

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from src.config import Settings
from src.services.reviewer.nodes import ReviewNodes, decide_file_review, decide_summary, message_text
from src.services.reviewer.schemas import (
    ChangedFile,
    ReviewAction,
    ReviewComment,
    Skip,
    SubmitReview,
)
from tests.conftest import BOT, FakeHost, comment_call, review_comment, summary_call, tool_call

PATCH = "@@ -1,3 +1,3 @@\n-a\n+b\n context"


def seeded_state() -> dict:
    return {
        "messages": [
            SystemMessage(content="system"),
            AIMessage(content="The PR adds a widget."),
        ],
        "comments": [ReviewComment(comment="earlier", position=1, path="old.py")],
    }


def apply_update(state: dict, update: dict) -> dict:
    """Merge a node update the way the graph's reducers do."""
    return {key: operator.add(state[key], update.get(key, [])) for key in state}


def assert_prefix(before: dict, after: dict) -> None:
    for key in before:
        assert after[key][: len(before[key])] == before[key]
        assert len(after[key]) >= len(before[key])


def make_nodes(llm, host, **kwargs) -> ReviewNodes:
    return ReviewNodes(
        llm=llm,
        host=host,
        codebase_overview="A widget store written in FastAPI.",
        file_review_delay=0,
        reply_delay=0,
        **kwargs,
    )


class TestDecisions:
    """Tests for turning model responses into explicit outcomes."""

    def test_comment(self):
        outcome = decide_file_review(comment_call("Use a constant.", 2), "a.py")

        assert outcome == ReviewComment(comment="Use a constant.", position=2, path="a.py")

    def test_explicit_skip(self):
        outcome = decide_file_review(comment_call("", 0, skip=True), "a.py")

        assert isinstance(outcome, Skip)

    def test_missing_tool_call_is_skip(self):
        outcome = decide_file_review(AIMessage(content="Looks good to me"), "a.py")

        assert outcome == Skip(reason="no structured response")

    def test_malformed_args_are_skip(self):
        outcome = decide_file_review(
            tool_call("ReviewCommentResponse", {"comment": "x", "position": "line four"}), "a.py"
        )

        assert isinstance(outcome, Skip)

    @pytest.mark.parametrize(
        "args",
        [
            {"skip": False},
            {"comment": "Use a constant.", "skip": False},
            {"position": 3},
            {"comment": "   ", "position": 3},
            {"comment": "Use a constant.", "position": 0},
        ],
    )
    def test_comment_without_text_or_position_is_skip(self, args):
        outcome = decide_file_review(tool_call("ReviewCommentResponse", args), "a.py")

        assert outcome == Skip(reason="malformed structured response")

    def test_skip_needs_no_comment_or_position(self):
        outcome = decide_file_review(tool_call("ReviewCommentResponse", {"skip": True}), "a.py")

        assert outcome == Skip(reason="model chose to skip")

    def test_position_forwarded_unvalidated(self):
        """The stage trusts the model's position."""
        outcome = decide_file_review(comment_call("far away", 999), "a.py")

        assert outcome.position == 999

    def test_summary_submit(self):
        outcome = decide_summary(summary_call("Solid change.", "APPROVE"))

        assert outcome == SubmitReview(summary="Solid change.", action=ReviewAction.APPROVE)

    def test_summary_without_tool_call_is_skip(self):
        assert isinstance(decide_summary(AIMessage(content="LGTM")), Skip)

    def test_summary_unknown_action_is_skip(self):
        assert isinstance(decide_summary(summary_call("?", "MERGE")), Skip)

    def test_message_text_from_parts(self):
        message = AIMessage(content=[{"type": "text", "text": "Hello "}, "world"])

        assert message_text(message) == "Hello world"


class TestInputUnderstanding:
    """Tests for the input understanding stage."""

    @pytest.mark.asyncio
    async def test_appends_model_response(self, llm):
        llm.responses = [AIMessage(content="Understood.")]
        host = FakeHost(context="Title: Add widget")
        state = seeded_state()

        update = await make_nodes(llm, host).input_understanding(state)

        assert [m.content for m in update["messages"]] == ["Understood."]
        assert "comments" not in update
        assert_prefix(state, apply_update(state, update))

    @pytest.mark.asyncio
    async def test_prompt_carries_overview_and_context(self, llm):
        host = FakeHost(context="Title: Add widget")

        await make_nodes(llm, host).input_understanding(seeded_state())

        [prompt] = llm.calls[0]
        assert isinstance(prompt, HumanMessage)
        assert "What framework is used?" in prompt.content
        assert "A widget store written in FastAPI." in prompt.content
        assert "Title: Add widget" in prompt.content


class TestKnowledgeUpdates:
    """Tests for the knowledge update stage."""

    @pytest.mark.asyncio
    async def test_binds_tools_and_appends_response(self, llm):
        request = tool_call("fetch_web_page", {"url": "https://fastapi.tiangolo.com"})
        llm.responses = [request]
        state = seeded_state()
        nodes = make_nodes(llm, FakeHost(), knowledge_tools=["fake-tool"])

        update = await nodes.knowledge_updates(state)

        [response] = update["messages"]
        assert response.tool_calls[0]["name"] == "fetch_web_page"
        assert llm.bound_tools == [["fake-tool"]]
        assert llm.calls[0][: len(state["messages"])] == state["messages"]
        assert_prefix(state, apply_update(state, update))


class TestReviewComments:
    """Tests for the per-file review loop."""

    @pytest.mark.asyncio
    async def test_collects_one_comment_per_reviewed_file(self, llm):
        host = FakeHost(
            files=[
                ChangedFile(filename="a.py", patch=PATCH),
                ChangedFile(filename="dist/bundle.js", patch=PATCH),
                ChangedFile(filename="c.py", previous_filename="b.py", patch=PATCH),
            ],
            contents={"a.py": "b\ncontext\n", "c.py": "print()\n"},
        )
        llm.responses = [
            comment_call("Rename this.", 2),
            comment_call("", 0, skip=True),
            comment_call("Missing test.", 3),
        ]
        state = seeded_state()

        update = await make_nodes(llm, host).review_comments(state)

        assert update["comments"] == [
            ReviewComment(comment="Rename this.", position=2, path="a.py"),
            ReviewComment(comment="Missing test.", position=3, path="c.py"),
        ]
        assert "messages" not in update
        assert_prefix(state, apply_update(state, update))

    @pytest.mark.asyncio
    async def test_missing_tool_call_skips_file_and_continues(self, llm):
        host = FakeHost(
            files=[ChangedFile(filename="a.py", patch=PATCH), ChangedFile(filename="b.py", patch=PATCH)],
        )
        llm.responses = [AIMessage(content="I think this is fine"), comment_call("Typo.", 1)]

        update = await make_nodes(llm, host).review_comments(seeded_state())

        assert update["comments"] == [ReviewComment(comment="Typo.", position=1, path="b.py")]
        assert len(llm.calls) == 2

    @pytest.mark.asyncio
    async def test_prompt_truncates_content_and_patch(self, llm):
        long_patch = "@@ -1 +1 @@\n" + "+x\n" * 100
        host = FakeHost(
            files=[ChangedFile(filename="big.py", previous_filename="old_big.py", patch=long_patch)],
            contents={"big.py": "y" * 500},
        )
        nodes = make_nodes(llm, host, file_content_limit=50, patch_limit=30)

        await nodes.review_comments(seeded_state())

        prompt = llm.calls[0][-1].content
        assert "y" * 50 in prompt
        assert "y" * 51 not in prompt
        assert long_patch[:30] in prompt
        assert long_patch[:31] not in prompt
        assert "Previous Filename: old_big.py" in prompt
        assert "ReviewCommentResponse" in prompt

    @pytest.mark.asyncio
    async def test_removed_file_content_not_fetched(self, llm):
        host = FakeHost(files=[ChangedFile(filename="gone.py", status="removed", patch="@@ -1 +0,0 @@\n-x")])

        await make_nodes(llm, host).review_comments(seeded_state())

        assert "get_file_content:gone.py" not in host.calls

    @pytest.mark.asyncio
    async def test_files_reviewed_in_order_with_history(self, llm):
        host = FakeHost(files=[ChangedFile(filename=name, patch=PATCH) for name in ("1.py", "2.py", "3.py")])
        state = seeded_state()

        await make_nodes(llm, host).review_comments(state)

        reviewed = [call[-1].content.split("Filename: ")[1].splitlines()[0] for call in llm.calls]
        assert reviewed == ["1.py", "2.py", "3.py"]
        for call in llm.calls:
            assert call[: len(state["messages"])] == state["messages"]


class TestReviewSummary:
    """Tests for the review summary stage."""

    @pytest.mark.asyncio
    async def test_submits_full_comment_list(self, llm):
        host = FakeHost()
        llm.responses = [summary_call("Needs work.", "REQUEST_CHANGES")]
        state = seeded_state()

        update = await make_nodes(llm, host).review_summary(state)

        assert host.reviews == [("Needs work.", state["comments"], ReviewAction.REQUEST_CHANGES)]
        assert update == {"messages": []}
        prompt = llm.calls[0][-1].content
        assert "Filename: old.py" in prompt
        assert "Position: 1" in prompt
        assert "Review Comment: earlier" in prompt

    @pytest.mark.asyncio
    async def test_no_structured_response_submits_nothing(self, llm):
        host = FakeHost()
        llm.responses = [AIMessage(content="Great PR!")]

        update = await make_nodes(llm, host).review_summary(seeded_state())

        assert host.reviews == []
        assert update == {"messages": []}


class TestReplyReviewComments:
    """Tests for the reply-to-reviewer stage."""

    @pytest.mark.asyncio
    async def test_replies_only_to_pending_threads(self, llm):
        host = FakeHost(
            review_comments=[
                review_comment(1, BOT, "No replies yet."),
                review_comment(2, BOT, "Bot spoke last."),
                review_comment(3, "alice", "Why?", in_reply_to_id=2),
                review_comment(4, BOT, "Because.", in_reply_to_id=2),
                review_comment(5, BOT, "Human spoke last."),
                review_comment(6, "bob", "Are you sure?", in_reply_to_id=5),
                review_comment(7, "carol", "Human thread."),
                review_comment(8, "dave", "Reply.", in_reply_to_id=7),
            ]
        )
        llm.responses = [AIMessage(content="Yes, because of X.")]
        state = seeded_state()

        update = await make_nodes(llm, host).reply_review_comments(state)

        assert host.replies == [(5, "Yes, because of X.")]
        assert len(llm.calls) == 1
        prompt = llm.calls[0][-1].content
        assert "- AI: Human spoke last." in prompt
        assert "- Human(bob): Are you sure?" in prompt
        assert "@@ -1,2 +1,2 @@" in prompt
        assert update == {"messages": []}
        assert_prefix(state, apply_update(state, update))

    @pytest.mark.asyncio
    async def test_nothing_pending_makes_no_model_calls(self, llm):
        host = FakeHost(review_comments=[review_comment(1, BOT, "Lonely.")])

        await make_nodes(llm, host).reply_review_comments(seeded_state())

        assert host.replies == []
        assert llm.calls == []


class TestRateLimitDelays:
    """Default pauses between host calls."""

    def test_settings_defaults(self):
        assert Settings.model_fields["file_review_delay_seconds"].default == 1.0
        assert Settings.model_fields["reply_delay_seconds"].default == 2.0

    @pytest.mark.asyncio
    async def test_pause_after_every_file(self, llm):
        host = FakeHost(files=[ChangedFile(filename=name, patch=PATCH) for name in ("a.py", "b.py", "c.py")])
        llm.responses = [comment_call("Rename.", 1), comment_call("", 0, skip=True), AIMessage(content="Fine.")]
        nodes = ReviewNodes(llm=llm, host=host, codebase_overview="")

        with patch("src.services.reviewer.nodes.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await nodes.review_comments(seeded_state())

        assert mock_sleep.await_args_list == [call(1.0)] * 3

    @pytest.mark.asyncio
    async def test_pause_after_every_posted_reply(self, llm):
        host = FakeHost(
            review_comments=[
                review_comment(1, BOT, "First."),
                review_comment(2, "alice", "Why?", in_reply_to_id=1),
                review_comment(3, BOT, "Second."),
                review_comment(4, "bob", "How?", in_reply_to_id=3),
                review_comment(5, BOT, "Third."),
                review_comment(6, "carol", "Really?", in_reply_to_id=5),
            ]
        )
        llm.responses = [AIMessage(content="Because."), AIMessage(content="   "), AIMessage(content="Like this.")]
        nodes = ReviewNodes(llm=llm, host=host, codebase_overview="")

        with patch("src.services.reviewer.nodes.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await nodes.reply_review_comments(seeded_state())

        assert host.replies == [(1, "Because."), (5, "Like this.")]
        assert mock_sleep.await_args_list == [call(2.0)] * 2
