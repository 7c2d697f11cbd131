import logging
import socket

from wirechan.conduit import base

logger = logging.getLogger(__name__)


class SocketConduit(base.Conduit):
    """
    A conduit that provides communication via a socket.
    :param sock The open, connected socket
    """
    def __init__(self, sock: socket.socket):
        """
        :param sock: the client socket that represents the connection
        :type sock: socket
        """
        self.sock = sock
        self.read = sock.makefile('rb')
        self.write = sock.makefile('wb')

    @property
    def open(self) -> bool:
        return self.sock.fileno() >= 0

    @property
    def target(self):
        return self.sock

    @property
    def output(self):
        return self.write

    @property
    def input(self):
        return self.read

    def close(self):
        # shutdown first: it wakes a thread blocked in recv(), which still holds the reader's lock
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass    # the peer may have closed the socket already
        for stream in (self.read, self.write):
            try:
                stream.close()
            except OSError as e:
                logger.debug("error closing socket stream: %s", e)
        self.sock.close()


def socket_pair():
    """
    Creates two conduits connected to each other through an in-memory socket pair.
    What is written to one conduit's output is read from the other's input.
    :return: a tuple of two SocketConduit instances
    """
    a, b = socket.socketpair()
    return SocketConduit(a), SocketConduit(b)
