"""
A channel wraps a conduit and carries typed values over it.

Each value is sent as a frame: the registered name of the value's type, followed by the value itself,
written as two consecutive codec values. A background thread drains the outbound mailbox onto the conduit,
and another reads frames from the conduit into the inbound mailbox. Errors from either thread are posted to
the error mailbox rather than stopping the channel. Only the end of the stream stops the inbound thread,
and only closing the outbound mailbox stops the outbound thread.
"""
import logging
import os
import sys
import threading
from collections import namedtuple

from wirechan.codecs import JsonLinesCodec, StreamCodec
from wirechan.conduit.base import Conduit, is_stream_closed
from wirechan.config.config import configure_module
from wirechan.protocol.errors import ChannelClosedError, ContractViolationError, RecvError, SendError, \
    UnregisteredTypeError
from wirechan.protocol.loop import AsyncLoop
from wirechan.protocol.mailbox import ErrorMailbox, Mailbox
from wirechan.registry import TypeRegistry
from wirechan.support.events import EventSource

logger = logging.getLogger(__name__)

# defaults, overridden by the channel*.cfg files beside this module
buffer_length = 100
error_capacity = 100
abort_on_violation = False
close_on_unregistered = False


Message = namedtuple('Message', ('type_name', 'value'))
Message.__doc__ = """ A received value tagged with the name of its type. Delivered when the channel is tagged. """


class ChannelEvent:
    """ base class for channel events. """
    def __init__(self, channel):
        self.channel = channel


class ChannelDisconnectedEvent(ChannelEvent):
    """ The channel's inbound stream has ended. No more values will be received. """


class OutboundLoop(AsyncLoop):
    """ Takes values from the outbound mailbox and writes them to the conduit as frames, in the order they were sent. """

    def __init__(self, channel):
        super().__init__(name='wirechan-outbound')
        self.channel = channel

    def loop(self):
        channel = self.channel
        try:
            value = channel._outbound.get()
        except ChannelClosedError:
            self.stop_event.set()
            return
        name = channel.registry.resolve_by_value(value)
        if name is None:
            raise UnregisteredTypeError(value)
        descriptor = channel.registry.resolve_by_name(name)
        output = channel.conduit.output
        try:
            head = channel.codec.serialize(name)
            body = channel.codec.serialize(descriptor.encode(value))
            output.write(head)
            output.write(body)
            output.flush()
        except Exception as e:
            channel.errors.offer(SendError(e))
            return
        logger.debug("sent %s", name)

    def exception_handler(self, e):
        if isinstance(e, ContractViolationError):
            self.channel.contract_violation(e)
        else:
            super().exception_handler(e)


class InboundLoop(AsyncLoop):
    """ Reads frames from the conduit and posts the decoded values to the inbound mailbox. """

    def __init__(self, channel):
        super().__init__(name='wirechan-inbound')
        self.channel = channel

    def running(self):
        return super().running() and not self.channel.shutdown_event.is_set()

    def loop(self):
        channel = self.channel
        stream = channel.conduit.input
        try:
            name = channel.codec.read(stream)
        except Exception as e:
            self._read_failed(e, stream)
            return

        descriptor = channel.registry.resolve_by_name(name)
        if descriptor is None:
            # the payload that follows is not consumed, and will be read as the next type name
            channel.errors.offer(RecvError("type not allowed: %s" % (name,)))
            if channel.close_on_unregistered:
                logger.warning("closing channel after receiving unregistered type %r", name)
                channel.close()
            return

        instance = channel.registry.new_instance(descriptor)
        try:
            data = channel.codec.read(stream)
        except Exception as e:
            self._read_failed(e, stream)
            return
        try:
            value = descriptor.decode_into(instance, data)
        except Exception as e:
            channel.errors.offer(RecvError(e))
            return
        logger.debug("received %s", name)
        # blocks while the caller is not taking values
        channel.inbound.put(Message(name, value) if channel.tagged else value)

    def _read_failed(self, e, stream):
        if is_stream_closed(e, stream):
            logger.debug("inbound stream closed: %r", e)
            self.stop_event.set()
        else:
            self.channel.errors.offer(RecvError(e))

    def shutdown(self):
        channel = self.channel
        if channel.inbound.close():
            channel.events.fire(ChannelDisconnectedEvent(channel))


class Channel:
    """
    Sends and receives typed values over a conduit.

    Values of the allowed types are passed to send(), and are written to the conduit some time later, in order.
    Values arriving from the peer are taken with recv(), or by iterating the channel, in the order they arrived.
    Errors from sending and receiving are taken from the errors mailbox. It is never closed and drops errors
    when full.

    The channel owns the conduit: it must not be used directly once the channel is constructed, and it is
    closed when the channel is closed.

    :param conduit: the bi-directional stream to carry values over
    :param buffer_length: the number of values that can be queued for sending, and the number that can be
        queued after receiving.
    :param allowed: the types that can be sent and received. Either a sequence of prototypes
        (an example value, or the type itself), named after their type, or a mapping of name to prototype.
    :param codec: serializes values on the wire. Defaults to JSON lines.
    :param tagged: when True, received values are delivered as Message(type_name, value)
    :raises ValueError: buffer_length or error_capacity is less than 1.
    """

    def __init__(self, conduit: Conduit, buffer_length=None, allowed=(), codec: StreamCodec=None, tagged=False,
                 error_capacity=None, abort_on_violation=None, close_on_unregistered=None):
        module = sys.modules[__name__]
        self.conduit = conduit
        self.registry = allowed if isinstance(allowed, TypeRegistry) else TypeRegistry.from_types(allowed)
        self.codec = codec if codec is not None else JsonLinesCodec()
        self.tagged = tagged
        self.abort_on_violation = _setting(abort_on_violation, module.abort_on_violation)
        self.close_on_unregistered = _setting(close_on_unregistered, module.close_on_unregistered)
        length = _setting(buffer_length, module.buffer_length)
        capacity = _setting(error_capacity, module.error_capacity)
        if length < 1:
            raise ValueError("buffer length must be at least 1, got %r" % (length,))
        if capacity < 1:
            raise ValueError("error capacity must be at least 1, got %r" % (capacity,))
        self._outbound = Mailbox(length)
        self.inbound = Mailbox(length)
        self.errors = ErrorMailbox(capacity)
        self.events = EventSource()
        self.shutdown_event = threading.Event()
        self.violation = None
        self._close_lock = threading.Lock()
        self.outbound_loop = OutboundLoop(self)
        self.inbound_loop = InboundLoop(self)
        self.outbound_loop.start()
        self.inbound_loop.start()

    def send(self, value, block=True, timeout=None):
        """
        Queues a value to be sent. Blocks while the outbound mailbox is full, unless block is False.
        :raises UnregisteredTypeError: the value's type is not one the channel was constructed with.
            Nothing is queued or written. With abort_on_violation set, the process aborts instead.
        :raises ChannelClosedError: the channel is closed.
        :raises queue.Full: the mailbox stayed full for the timeout, or was full and block is False.
        """
        if self.violation is not None:
            raise self.violation
        if self.registry.resolve_by_value(value) is None:
            error = UnregisteredTypeError(value)
            if self.abort_on_violation:
                self.contract_violation(error)
            raise error
        try:
            self._outbound.put(value, block, timeout)
        except ChannelClosedError:
            raise ChannelClosedError("channel is closed") from None

    def recv(self, block=True, timeout=None):
        """
        Takes the next received value.
        :raises ChannelClosedError: the channel is closed and every received value has been taken.
        :raises queue.Empty: no value arrived within the timeout, or none is waiting and block is False.
        """
        return self.inbound.get(block, timeout)

    def __iter__(self):
        return iter(self.inbound)

    @property
    def closed(self) -> bool:
        return self.shutdown_event.is_set()

    def close(self):
        """
        Shuts down the channel. Nothing more can be sent. Values already taken by the outbound thread are
        still written if the conduit allows, and the inbound mailbox is closed once the inbound thread
        notices the conduit has closed. Only the first call does anything, and it is safe to call from
        several threads.
        """
        with self._close_lock:
            if self.shutdown_event.is_set():
                return
            self.shutdown_event.set()
        logger.info("closing channel")
        self._outbound.close()
        # releases a read blocked in the inbound thread
        self.conduit.close()

    def join(self, timeout=None) -> bool:
        """
        Waits for both background threads to exit.
        :return: True if both have exited.
        """
        outbound = self.outbound_loop.join(timeout)
        inbound = self.inbound_loop.join(timeout)
        return outbound and inbound

    def contract_violation(self, error: ContractViolationError):
        """
        Called when an unregistered value reaches the outbound thread, or is sent while abort_on_violation
        is set. The channel is closed and every later send() raises the error again. When abort_on_violation
        is set the process is aborted.
        """
        logger.critical("contract violation on channel: %s", error, exc_info=error)
        if self.abort_on_violation:
            os.abort()
        self.violation = error
        self.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _setting(value, default):
    return default if value is None else value


configure_module(sys.modules[__name__])
