import errno
from abc import abstractmethod
from io import IOBase

# errors from the OS that mean the other end has gone away or the descriptor was closed under us
closed_errnos = frozenset((errno.EBADF, errno.ENOTCONN, errno.ESHUTDOWN, errno.EPIPE))


class Conduit:
    """
    A conduit allows two-way communication. It provides an file-like input endpoint and a file-like output endpoint.
    """

    @property
    @abstractmethod
    def target(self):
        raise NotImplementedError

    @property
    @abstractmethod
    def input(self) -> IOBase:
        """ fetches the I/O stream that provides input.
            Callers can use the usual readXXX() methods. """
        raise NotImplementedError

    @property
    @abstractmethod
    def output(self) -> IOBase:
        """ fetches the I/O stream that provides output.
            Callers can use the usual writeXXX() methods. """
        raise NotImplementedError

    @property
    @abstractmethod
    def open(self) -> bool:
        """ determines if this conduit is open. When open, the streams provided by
            input and output can be read from/written to."""
        raise NotImplementedError

    @abstractmethod
    def close(self):
        """
        Closes both the input and output streams. Any read blocked on the input stream
        must be released by this call.
        """
        raise NotImplementedError


class DefaultConduit(Conduit):
    """ provides the conduit streams from specific read/write file-like types (which may be the same value) """

    def __init__(self, read=None, write=None):
        self._read = self._write = None
        self._closed = False
        self.set_streams(read, write)

    def set_streams(self, read, write=None):
        self._read = read
        self._write = write if write is not None else read

    def close(self):
        self._closed = True
        self._write.close()
        if self._read is not self._write:
            self._read.close()

    @property
    def open(self):
        return not self._closed

    @property
    def target(self):
        return self._read

    @property
    def input(self) -> IOBase:
        return self._read

    @property
    def output(self) -> IOBase:
        return self._write


def is_stream_closed(error: BaseException, stream=None) -> bool:
    """
    Classifies an exception raised while reading or writing a stream.
    :param error: the exception raised by the stream or the codec reading it
    :param stream: the stream that was being used, if known.
    :return: True if the error means no more data will ever arrive: end of stream,
        a closed connection or a stream that has been closed locally.
    """
    if isinstance(error, (EOFError, ConnectionError)):
        return True
    if isinstance(error, OSError) and error.errno in closed_errnos:
        return True
    return bool(getattr(stream, 'closed', False))
