import asyncio
import random

from simdrome.line_decoder import FrameLineDecoder, decode_lines

RECORDS = [
    '{"status": "starting simulation"}',
    '{"objects": [[[7000, 0, 0], [0, 7, 0]]], "object_count": 1}',
    '{"status": "débris → ok"}',
]
PAYLOAD = ("\n".join(RECORDS) + "\n").encode("utf-8")


def _decode(chunks):
    decoder = FrameLineDecoder()
    lines = []
    for chunk in chunks:
        lines.extend(decoder.feed(chunk))
    decoder.finish()
    return lines


def test_single_chunk_many_records():
    assert _decode([PAYLOAD]) == RECORDS


def test_every_two_way_split_yields_same_lines():
    for offset in range(len(PAYLOAD) + 1):
        assert _decode([PAYLOAD[:offset], PAYLOAD[offset:]]) == RECORDS, offset


def test_byte_at_a_time():
    assert _decode([PAYLOAD[i:i + 1] for i in range(len(PAYLOAD))]) == RECORDS


def test_random_chunking():
    rng = random.Random(1234)
    for _ in range(200):
        cuts = sorted(rng.sample(range(1, len(PAYLOAD)), rng.randint(1, 12)))
        bounds = [0, *cuts, len(PAYLOAD)]
        chunks = [PAYLOAD[a:b] for a, b in zip(bounds, bounds[1:])]
        assert _decode(chunks) == RECORDS


def test_terminator_exactly_on_chunk_boundary():
    decoder = FrameLineDecoder()
    assert list(decoder.feed(b'{"status": "a"}')) == []
    assert list(decoder.feed(b'\n')) == ['{"status": "a"}']
    assert decoder.pending == 0


def test_unterminated_fragment_is_never_emitted():
    decoder = FrameLineDecoder()
    assert list(decoder.feed(b'{"status": "a"}\n{"status": "trunc')) == ['{"status": "a"}']
    assert decoder.pending > 0
    decoder.finish()
    assert decoder.pending == 0


def test_empty_and_blank_lines_suppressed():
    assert _decode([b"\n\n  \nabc\n\r\n\n"]) == ["abc"]


def test_crlf_is_stripped():
    assert _decode([b"one\r\ntwo\r", b"\n"]) == ["one", "two"]


def test_chunk_with_no_terminator_is_buffered():
    decoder = FrameLineDecoder()
    assert list(decoder.feed(b"abc")) == []
    assert list(decoder.feed(b"def")) == []
    assert list(decoder.feed(b"\n")) == ["abcdef"]


def test_feed_buffers_even_when_not_consumed():
    decoder = FrameLineDecoder()
    decoder.feed(b"abc")
    assert decoder.pending == 3


def test_multibyte_character_split_across_chunks():
    data = '{"status": "→"}\n'.encode("utf-8")
    split = data.index("→".encode("utf-8")) + 1
    assert _decode([data[:split], data[split:]]) == ['{"status": "→"}']


def test_decode_lines_async():
    async def chunks():
        yield b'{"a": 1}\n{"b"'
        yield b': 2}\n{"c": 3}'

    async def collect():
        return [line async for line in decode_lines(chunks())]

    assert asyncio.run(collect()) == ['{"a": 1}', '{"b": 2}']
