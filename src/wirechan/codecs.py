"""
Codecs convert values to and from the bytes carried on a stream. A codec value is
self-delimiting: reading one value consumes exactly the bytes written for it, so frames
need no length prefix.
"""
import json
from abc import abstractmethod


class StreamCodec:
    """
    Knows how to convert plain values (strings, numbers, lists, dicts) to/from the on-wire data format.
    """

    @abstractmethod
    def serialize(self, value) -> bytes:
        """ returns the encoded form of a single value. Raises TypeError or ValueError if the value
            cannot be represented. """
        raise NotImplementedError()

    @abstractmethod
    def read(self, stream):
        """
        reads and decodes the next value from the stream, blocking until it is available.
        Raises EOFError when the stream has ended.
        """
        raise NotImplementedError()

    def write(self, stream, value):
        stream.write(self.serialize(value))


class JsonLinesCodec(StreamCodec):
    """
    Encodes each value as a compact JSON document terminated by a newline.
    JSON never emits a raw newline inside a document, so the newline delimits values.

    >>> JsonLinesCodec().serialize({"X": 1, "Y": 2})
    b'{"X":1,"Y":2}\\n'
    """
    terminator = b'\n'

    def __init__(self, encoding='utf-8'):
        self.encoding = encoding

    def serialize(self, value) -> bytes:
        return json.dumps(value, separators=(',', ':'), ensure_ascii=False).encode(self.encoding) + self.terminator

    def read(self, stream):
        line = stream.readline()
        if not line:
            raise EOFError("end of stream")
        if not line.endswith(self.terminator):
            # the writer went away part way through a value
            raise EOFError("truncated value at end of stream: %r" % line)
        return json.loads(line.decode(self.encoding))
