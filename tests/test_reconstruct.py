"""Tests for shared message reconstruction."""

from agent_history.reconstruct import (
    Block,
    RawMessage,
    flatten_result_content,
    make_preview,
    make_title,
    merge_revisions,
    reconstruct,
    reconstruct_all,
)


def raw(key, *blocks, role="assistant", msg_id=None, count=None):
    return RawMessage(
        id=msg_id or key or "m",
        role=role,
        timestamp=None,
        blocks=list(blocks),
        key=key,
        block_count=len(blocks) if count is None else count,
    )


class TestMergeRevisions:
    """Tests for duplicate message handling."""

    def test_more_blocks_replaces(self):
        first = raw("a", Block.text_block("short"))
        second = raw("a", Block.text_block("long"), Block.text_block("more"))
        assert merge_revisions([first, second]) == [second]

    def test_equal_blocks_keeps_first(self):
        first = raw("a", Block.text_block("one"))
        second = raw("a", Block.text_block("two"))
        assert merge_revisions([first, second]) == [first]

    def test_fewer_blocks_keeps_first(self):
        first = raw("a", Block.text_block("one"), Block.text_block("two"))
        second = raw("a", Block.text_block("three"))
        assert merge_revisions([first, second]) == [first]

    def test_replacement_keeps_position(self):
        a1 = raw("a", Block.text_block("a"))
        b = raw("b", Block.text_block("b"))
        a2 = raw("a", Block.text_block("a"), Block.text_block("a2"))
        assert [m.key for m in merge_revisions([a1, b, a2])] == ["a", "b"]
        assert merge_revisions([a1, b, a2])[0] is a2

    def test_no_key_never_merged(self):
        messages = [raw(None, Block.text_block("x")), raw(None, Block.text_block("y"))]
        assert merge_revisions(messages) == messages


class TestReconstruct:
    """Tests for building a Message from blocks."""

    def test_text_joined_with_blank_line(self):
        message = reconstruct(raw("a", Block.text_block("one"), Block.text_block("two")))
        assert message.text_content == "one\n\ntwo"

    def test_thinking_first_and_last(self):
        message = raw("a", Block.thinking_block("first"), Block.thinking_block("second"))
        assert reconstruct(message).thinking == "first"
        assert reconstruct(message, thinking="last").thinking == "second"

    def test_tool_calls_in_order(self):
        message = reconstruct(raw(
            "a",
            Block.tool_call("t1", "Read", {"path": "a"}),
            Block.tool_call("t2", "Edit"),
        ))
        assert [(c.id, c.name) for c in message.tool_calls] == [("t1", "Read"), ("t2", "Edit")]
        assert message.tool_calls[0].input == {"path": "a"}
        assert message.tool_calls[1].input == {}

    def test_tool_calls_only_on_assistant(self):
        message = reconstruct(raw("u", Block.tool_call("t1", "Read"), role="user"))
        assert message.tool_calls == ()

    def test_tool_results_only_on_result_roles(self):
        block = Block.tool_result("t1", "out")
        assert reconstruct(raw("a", block)).tool_results == ()
        assert len(reconstruct(raw("u", block, role="user")).tool_results) == 1
        assert len(reconstruct(raw("a", block), result_roles=("user", "assistant")).tool_results) == 1

    def test_tool_result_requires_call_id(self):
        message = reconstruct(raw("u", Block.tool_result("", "out"), role="user"))
        assert message.tool_results == ()

    def test_first_call_id_wins(self):
        message = reconstruct(raw(
            "u",
            Block.tool_result("t1", "first"),
            Block.tool_result("t1", "second"),
            role="user",
        ))
        assert [r.content for r in message.tool_results] == ["first"]

    def test_reconstruct_all_merges_first(self):
        messages = reconstruct_all([
            raw("a", Block.text_block("draft")),
            raw("a", Block.text_block("final"), Block.thinking_block("hm")),
        ])
        assert len(messages) == 1
        assert messages[0].text_content == "final"
        assert messages[0].thinking == "hm"


class TestTextHelpers:
    """Tests for content flattening and titles."""

    def test_flatten_string(self):
        assert flatten_result_content("plain") == "plain"

    def test_flatten_nested_list(self):
        value = [
            {"type": "text", "text": "a"},
            {"type": "image", "source": {}},
            [{"type": "text", "text": "b"}, "c"],
        ]
        assert flatten_result_content(value) == "a\nb\nc"

    def test_flatten_none(self):
        assert flatten_result_content(None) == ""

    def test_preview_limit(self):
        assert len(make_preview("y" * 500)) == 200
        assert make_preview("") is None
        assert make_preview(None) is None

    def test_title_is_prefix_of_first_line(self):
        preview = make_preview("z" * 150 + "\nsecond line")
        title = make_title(preview)
        assert len(title) == 100
        assert preview.split("\n")[0].startswith(title)

    def test_title_placeholder(self):
        assert make_title(None) == "Untitled Session"
        assert make_title("\nstarts blank", "Session 2025-01-01") == "Session 2025-01-01"
