"""测试流式解码器。"""

import pytest

from chat_core.domain.exceptions import DecodeError, NetworkError
from chat_core.streaming.decoder import StreamDecoder


HI_STREAM = b'data: {"choices":[{"delta":{"content":"Hi"}}]}\n' + b"data: [DONE]\n"


def event(text):
    return ('data: {"choices":[{"delta":{"content":"%s"}}]}\n' % text).encode("utf-8")


def decode(chunks):
    decoder = StreamDecoder(chunks)
    fragments = [d.text for d in decoder]
    return fragments, decoder


def test_single_chunk():
    fragments, decoder = decode([HI_STREAM])
    assert fragments == ["Hi"]
    assert decoder.done
    assert decoder.stats.skipped == 0


def test_every_split_offset_gives_same_result():
    for offset in range(len(HI_STREAM) + 1):
        chunks = [HI_STREAM[:offset], HI_STREAM[offset:]]
        fragments, decoder = decode(chunks)
        assert fragments == ["Hi"], offset
        assert decoder.done


def test_byte_by_byte_multi_event_stream():
    body = event("He") + b"\n" + event("llo") + event(" wörld") + b"data: [DONE]\n"
    whole, _ = decode([body])
    split, _ = decode([body[i:i + 1] for i in range(len(body))])
    assert whole == ["He", "llo", " wörld"]
    assert split == whole


def test_malformed_event_is_skipped():
    body = (
        b"data: {not json}\n"
        + b'data: {"choices":[{"delta":{"content":"ok"}}]}\n'
        + b"data: [DONE]\n"
    )
    fragments, decoder = decode([body])
    assert "".join(fragments) == "ok"
    assert decoder.stats.skipped == 1
    assert len(decoder.stats.warnings) == 1


def test_comment_and_non_data_lines_are_ignored():
    body = b": keep-alive\n\nevent: message\n" + event("a") + b"id: 7\r\n" + event("b") + b"data: [DONE]\n"
    fragments, decoder = decode([body])
    assert fragments == ["a", "b"]
    assert decoder.stats.skipped == 0


def test_crlf_line_endings():
    body = HI_STREAM.replace(b"\n", b"\r\n")
    fragments, _ = decode([body])
    assert fragments == ["Hi"]


def test_delta_without_content_yields_nothing():
    body = (
        b'data: {"choices":[{"delta":{"role":"assistant"}}]}\n'
        + b'data: {"choices":[{"delta":{"content":null}}]}\n'
        + b'data: {"choices":[{"delta":{"content":""}}]}\n'
        + b'data: {"choices":[],"usage":{"total_tokens":3}}\n'
        + event("x")
        + b"data: [DONE]\n"
    )
    fragments, decoder = decode([body])
    assert fragments == ["x"]
    assert decoder.stats.events == 5
    assert decoder.stats.skipped == 0


def test_nothing_after_sentinel_is_read():
    reads = []

    def source():
        for chunk in (HI_STREAM, event("late")):
            reads.append(chunk)
            yield chunk

    fragments, _ = decode(source())
    assert fragments == ["Hi"]
    assert len(reads) == 1


def test_end_without_sentinel_is_normal_end():
    fragments, decoder = decode([event("a"), event("b")])
    assert fragments == ["a", "b"]
    assert not decoder.done


def test_unterminated_last_line_is_flushed_at_end():
    fragments, _ = decode([b'data: {"choices":[{"delta":{"content":"tail"}}]}'])
    assert fragments == ["tail"]


def test_source_error_after_partial_content():
    def source():
        yield event("He")
        yield event("llo")
        raise NetworkError(code="NETWORK_ERROR", message="connection reset")

    decoder = StreamDecoder(source())
    got = []
    with pytest.raises(NetworkError):
        for d in decoder:
            got.append(d.text)
    assert "".join(got) == "Hello"


def test_fully_malformed_stream_is_decode_error():
    decoder = StreamDecoder([b"data: {oops\n", b"data: [1, 2]\n"])
    with pytest.raises(DecodeError):
        list(decoder)
    assert decoder.stats.skipped == 2


def test_empty_stream_is_not_an_error():
    fragments, decoder = decode([])
    assert fragments == []
    assert decoder.stats.events == 0


def test_decoder_is_single_pass():
    decoder = StreamDecoder([HI_STREAM])
    list(decoder)
    with pytest.raises(RuntimeError):
        iter(decoder)


def test_feed_keeps_partial_line_buffered():
    decoder = StreamDecoder()
    assert decoder.feed(b'data: {"choices":[{"delta":') == []
    out = decoder.feed(b'{"content":"Hi"}}]}\ndata: [DO')
    assert [d.text for d in out] == ["Hi"]
    assert not decoder.done
    decoder.feed(b"NE]\n")
    assert decoder.done
