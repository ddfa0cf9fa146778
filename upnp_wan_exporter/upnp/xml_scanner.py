"""Streaming XML token reader.

Used for both UPnP device description documents and SOAP response
bodies. The scanner knows nothing about either schema; it only turns a
document into a flat stream of start/end/text tokens and leaves nesting
state to the consumer.
"""

from typing import Iterator, List
from xml.parsers import expat

from upnp_wan_exporter.upnp.models import TokenKind, XmlToken
from upnp_wan_exporter.upnp.exceptions import XmlParseError

# Characters handed to expat per feed
CHUNK_SIZE = 4096


def local_name(name: str) -> str:
    """Strip a namespace prefix ("s:Envelope" -> "Envelope")"""
    return name.rsplit(":", 1)[-1]


def scan_xml(text: str, chunk_size: int = CHUNK_SIZE) -> Iterator[XmlToken]:
    """Yield the tokens of ``text`` lazily, in document order.

    Adjacent character data is coalesced into a single TEXT token and
    whitespace-only runs are dropped. On malformed input every token seen
    before the error is yielded, then ``XmlParseError`` is raised.
    """
    pending: List[XmlToken] = []
    text_parts: List[str] = []

    def flush_text():
        if text_parts:
            data = "".join(text_parts)
            text_parts.clear()
            if data.strip():
                pending.append(XmlToken(TokenKind.TEXT, data))

    def on_start(name, attrs):
        flush_text()
        pending.append(XmlToken(TokenKind.START, local_name(name)))

    def on_end(name):
        flush_text()
        pending.append(XmlToken(TokenKind.END, local_name(name)))

    def on_text(data):
        text_parts.append(data)

    parser = expat.ParserCreate()
    parser.buffer_text = True
    parser.StartElementHandler = on_start
    parser.EndElementHandler = on_end
    parser.CharacterDataHandler = on_text

    offset = 0
    while True:
        chunk = text[offset:offset + chunk_size]
        offset += chunk_size
        is_final = offset >= len(text)
        try:
            parser.Parse(chunk, is_final)
        except expat.ExpatError as e:
            yield from pending
            raise XmlParseError(
                f"{expat.ErrorString(e.code)} (line {e.lineno}, column {e.offset})"
            ) from e

        if is_final:
            flush_text()
        yield from pending
        pending.clear()

        if is_final:
            break
