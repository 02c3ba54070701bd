"""
Incremental decoding of server-sent-event style chat completion streams.

The wire format is newline-delimited text.  Meaningful lines look like `data: <json>`, lines
starting with `:` are keep-alive comments and a payload of `[DONE]` ends the stream.  Only the
subset of the SSE grammar that the upstream API actually sends is understood; there is no
support for `event:` or `id:` fields.

Reads can split a line, a JSON payload or even a UTF-8 code point at any byte boundary, so each
stage below keeps just enough state to pick up where the previous read left off.
"""

import codecs
from dataclasses import dataclass
import json
import logging
from typing import Any, Dict, Iterator, List

from ai.ai_exceptions import AIStreamError


class AIByteDecoder:
    """Converts raw bytes into text, holding back incomplete multi-byte sequences."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    def decode(self, data: bytes, final: bool = False) -> str:
        """
        Decode the next block of bytes.

        Args:
            data: Bytes read from the stream
            final: True when no more bytes will follow, which flushes any held-back bytes

        Returns:
            Text decoded so far; may be empty if `data` only held part of a character
        """
        return self._decoder.decode(data, final)

    def reset(self) -> None:
        """Discard any held-back bytes."""
        self._decoder.reset()


class AILineFramer:
    """
    Accumulates decoded text and extracts complete newline-terminated lines.

    Anything after the last newline stays buffered until a later chunk completes it.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._last_raw_line: str | None = None

    @property
    def pending(self) -> str:
        """Text that has been fed but not yet framed into a line."""
        return self._buffer

    def feed(self, text: str) -> None:
        """Append decoded text to the buffer."""
        self._buffer += text

    def next_line(self) -> str | None:
        """
        Remove and return the next complete line, without its terminator.

        A single trailing carriage return is removed so CRLF streams frame the same as LF ones.

        Returns:
            The line, or None if the buffer holds no newline
        """
        newline_index = self._buffer.find("\n")
        if newline_index == -1:
            return None

        raw_line = self._buffer[:newline_index + 1]
        self._buffer = self._buffer[newline_index + 1:]
        self._last_raw_line = raw_line

        line = raw_line[:-1]
        if line.endswith("\r"):
            line = line[:-1]

        return line

    def lines(self) -> Iterator[str]:
        """Yield complete lines until the buffer has none left."""
        while (line := self.next_line()) is not None:
            yield line

    def push_back(self) -> None:
        """
        Restore the most recently extracted line to the front of the buffer.

        The line goes back exactly as it was read, terminator included, so the next call to
        `next_line()` returns it again unchanged.
        """
        if self._last_raw_line is None:
            return

        self._buffer = self._last_raw_line + self._buffer
        self._last_raw_line = None

    def clear(self) -> None:
        """Drop any buffered text."""
        self._buffer = ""
        self._last_raw_line = None


class AIEventFilter:
    """Selects the data-bearing lines of the stream and extracts their payloads."""

    COMMENT_PREFIX = ":"
    DATA_PREFIX = "data:"

    def extract_payload(self, line: str) -> str | None:
        """
        Extract the raw payload from a framed line.

        Args:
            line: A complete line with its terminator removed

        Returns:
            The trimmed payload string, or None for blank, comment or non-data lines
        """
        if not line.strip():
            return None

        if line.startswith(self.COMMENT_PREFIX):
            return None

        if not line.startswith(self.DATA_PREFIX):
            return None

        return line[len(self.DATA_PREFIX):].strip()


@dataclass
class AIStreamPayload:
    """One decoded data payload."""
    done: bool = False
    fragment: str | None = None
    error: Any = None


class AIPayloadParser:
    """Parses chat completion delta records."""

    DONE_SENTINEL = "[DONE]"

    def parse(self, payload: str) -> AIStreamPayload:
        """
        Parse a raw payload string.

        Records without a text delta (role-only deltas, usage records and the like) are valid and
        produce a payload with no fragment.

        Args:
            payload: Payload text with the `data:` prefix already removed

        Returns:
            The decoded payload

        Raises:
            json.JSONDecodeError: If the payload is not complete JSON
        """
        if payload == self.DONE_SENTINEL:
            return AIStreamPayload(done=True)

        record = json.loads(payload)
        if not isinstance(record, dict):
            return AIStreamPayload()

        if "error" in record:
            return AIStreamPayload(error=record["error"])

        return AIStreamPayload(fragment=self._extract_fragment(record))

    def _extract_fragment(self, record: Dict[str, Any]) -> str | None:
        choices = record.get("choices")
        if not isinstance(choices, list) or not choices:
            return None

        choice = choices[0]
        if not isinstance(choice, dict):
            return None

        delta = choice.get("delta")
        if not isinstance(delta, dict):
            return None

        content = delta.get("content")
        if not isinstance(content, str):
            return None

        return content


class AIStreamDecoder:
    """
    Turns a sequence of byte chunks into an ordered sequence of stream payloads.

    If a data line fails to parse it is pushed back onto the buffer and the current batch of lines
    stops there.  The line gets exactly one more attempt, on the next chunk or when the stream
    ends; failing that attempt too raises `AIStreamError`.
    """

    def __init__(self) -> None:
        self._byte_decoder = AIByteDecoder()
        self._framer = AILineFramer()
        self._event_filter = AIEventFilter()
        self._parser = AIPayloadParser()
        self._retry_line: str | None = None
        self._done = False
        self._logger = logging.getLogger("AIStreamDecoder")

    @property
    def done(self) -> bool:
        """True once the terminal sentinel has been seen."""
        return self._done

    @property
    def pending(self) -> str:
        """Text buffered while waiting for the rest of a line."""
        return self._framer.pending

    def feed(self, data: bytes) -> List[AIStreamPayload]:
        """
        Process the next chunk of bytes read from the stream.

        Args:
            data: Raw bytes, split at an arbitrary boundary

        Returns:
            Payloads completed by this chunk, in stream order

        Raises:
            AIStreamError: If a previously pushed-back line still cannot be parsed
        """
        if self._done:
            return []

        self._framer.feed(self._byte_decoder.decode(data))
        return self._drain()

    def finish(self) -> List[AIStreamPayload]:
        """
        Process whatever remains once the stream has closed.

        Any text after the final newline is an incomplete line and is discarded.

        Returns:
            Payloads completed by flushing the decoder

        Raises:
            AIStreamError: If a pushed-back line still cannot be parsed
        """
        if self._done:
            return []

        self._framer.feed(self._byte_decoder.decode(b"", final=True))
        payloads = self._drain()

        if self._framer.pending.strip():
            self._logger.debug("Discarding unterminated line at end of stream: %r", self._framer.pending)

        self._framer.clear()
        return payloads

    def _drain(self) -> List[AIStreamPayload]:
        payloads: List[AIStreamPayload] = []

        for line in self._framer.lines():
            payload_text = self._event_filter.extract_payload(line)
            if payload_text is None:
                continue

            try:
                payload = self._parser.parse(payload_text)

            except json.JSONDecodeError as e:
                if self._retry_line == line:
                    raise AIStreamError(f"Unable to parse stream payload: {payload_text!r}") from e

                self._logger.debug("Incomplete payload, waiting for more data: %r", payload_text)
                self._retry_line = line
                self._framer.push_back()
                break

            self._retry_line = None
            payloads.append(payload)

            if payload.done:
                self._done = True
                self._framer.clear()
                break

        return payloads
