import json

from chat_core.providers.stream_decoder import StreamDecoder, iter_delta_tokens


def frame(content):
    return "data: " + json.dumps({"choices": [{"index": 0, "delta": {"content": content}}]}) + "\n"


RESPONSE = (
    ": keep-alive comment\n"
    + frame("Hel")
    + "\n"
    + frame("lo, ")
    + "event: message\n"
    + frame("wörld 你好")
    + 'data: {"choices": [{"index": 0, "delta": {}, "finish_reason": "stop"}]}\n'
    + "\n"
    + "data: [DONE]\n"
)


def test_two_chunk_scenario():
    chunks = [
        'data: {"choices":[{"delta":{"content":"Hel"}}]}\n',
        'data: {"choices":[{"delta":{"content":"lo"}}]}\n\ndata: [DONE]\n',
    ]
    tokens = list(iter_delta_tokens(chunks))
    assert tokens == ["Hel", "lo"]
    assert "".join(tokens) == "Hello"


def test_any_two_way_split_gives_same_text():
    whole = "".join(iter_delta_tokens([RESPONSE]))
    assert whole == "Hello, wörld 你好"
    for i in range(len(RESPONSE) + 1):
        tokens = list(iter_delta_tokens([RESPONSE[:i], RESPONSE[i:]]))
        assert "".join(tokens) == whole, i


def test_single_character_chunks():
    tokens = list(iter_delta_tokens(list(RESPONSE)))
    assert "".join(tokens) == "Hello, wörld 你好"


def test_byte_chunks_split_inside_multibyte_character():
    raw = RESPONSE.encode("utf-8")
    for size in (1, 2, 3, 5, 7):
        chunks = [raw[i : i + size] for i in range(0, len(raw), size)]
        assert "".join(iter_delta_tokens(chunks)) == "Hello, wörld 你好"


def test_malformed_frame_is_skipped():
    good = [frame("a"), frame("b"), frame("c")]
    broken = [frame("a"), 'data: {"choices": [{"delta": {"content": "x"\n', frame("b"), frame("c")]
    assert list(iter_delta_tokens(broken)) == list(iter_delta_tokens(good)) == ["a", "b", "c"]


def test_frames_without_content_are_skipped():
    chunks = [
        'data: {"choices": []}\n',
        'data: {"usage": {"total_tokens": 3}}\n',
        'data: {"choices": [{"delta": {"content": null}}]}\n',
        'data: {"choices": [{"delta": {"content": ""}}]}\n',
        'data: "just a string"\n',
        frame("ok"),
    ]
    assert list(iter_delta_tokens(chunks)) == ["ok"]


def test_non_data_lines_are_ignored():
    chunks = ["event: ping\n", "id: 4\n", "data:" + frame("no-space")[6:], "retry: 10\n", frame("kept")]
    # "data:" without the trailing space is not an accepted frame
    assert list(iter_delta_tokens(chunks)) == ["kept"]


def test_done_is_a_no_op_by_default():
    chunks = [frame("a"), "data: [DONE]\n", frame("b")]
    assert list(iter_delta_tokens(chunks)) == ["a", "b"]


def test_done_stops_decoding_when_enabled():
    chunks = [frame("a") + "data: [DONE]\n" + frame("b"), frame("c")]
    assert list(iter_delta_tokens(chunks, stop_on_done=True)) == ["a"]


def test_stop_on_done_stops_consuming_the_source():
    consumed = []

    def source():
        for chunk in [frame("a"), "data: [DONE]\n", frame("b")]:
            consumed.append(chunk)
            yield chunk

    assert list(iter_delta_tokens(source(), stop_on_done=True)) == ["a"]
    assert len(consumed) == 2


def test_empty_and_partial_chunks_yield_nothing():
    decoder = StreamDecoder()
    assert decoder.feed("") == []
    assert decoder.feed(b"") == []
    assert decoder.feed('data: {"choices": [{"delta"') == []
    assert decoder.pending == 'data: {"choices": [{"delta"'
    assert decoder.feed(': {"content": "x"}}]}\n') == ["x"]
    assert decoder.pending == ""


def test_trailing_partial_line_is_discarded():
    chunks = [frame("a"), 'data: {"choices": [{"delta": {"content": "tail"}}]}']
    assert list(iter_delta_tokens(chunks)) == ["a"]


def test_crlf_line_endings():
    chunks = [frame("a").replace("\n", "\r\n"), "\r\n", frame("b").replace("\n", "\r\n")]
    assert list(iter_delta_tokens(chunks)) == ["a", "b"]


def test_finish_marks_decoder_done():
    decoder = StreamDecoder()
    decoder.feed("data: partial")
    decoder.finish()
    assert decoder.done
    assert decoder.pending == ""
    assert decoder.feed(frame("late")) == []
