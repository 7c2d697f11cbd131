"""
Typed message channels over a byte stream.

- Conduit: abstraction of a bi-directional stream. Combines 2 streams for reading and writing.
  SocketConduit wraps a connected socket; socket_pair() gives two conduits connected to each other.
- Codec: writes and reads single self-delimiting values on a stream. The default is JSON lines.
- TypeRegistry: the names and types a channel may carry. Outgoing values are tagged with
  the name of their type, and incoming names are turned back into values of that type.
- Channel: binds a conduit, a codec and a registry. Values passed to send() are framed and written
  by an outbound thread; an inbound thread reads frames and posts the values for recv().


## Framing

A frame is the type name followed by the value, as two consecutive codec values. There is no length
prefix, handshake or version; the codec's own delimiting separates frames. A frame with an unknown
type name is reported as an error, but its value is not skipped, so it will be read as the next
type name.

## Threading

Each channel runs two daemon threads. The outbound thread only writes to the conduit and the inbound thread
only reads from it, so the conduit needs no locking. The caller's threads talk to them through
bounded mailboxes: send() blocks when the outbound mailbox is full, and the inbound thread blocks when
the inbound mailbox is full - nothing more is read from the conduit until the caller takes values.

Errors are posted to a separate bounded mailbox that drops errors rather than block a thread.

close() stops both threads: the outbound mailbox is closed, and closing the conduit releases the
inbound thread's read. The inbound mailbox is closed when the inbound thread exits.
"""
from wirechan.codecs import JsonLinesCodec, StreamCodec
from wirechan.conduit.base import Conduit, DefaultConduit
from wirechan.conduit.socket_conduit import SocketConduit, socket_pair
from wirechan.protocol.channel import Channel, ChannelDisconnectedEvent, Message
from wirechan.protocol.errors import ChannelClosedError, ChannelError, ContractViolationError, RecvError, \
    RegistryError, SendError, UnregisteredTypeError
from wirechan.registry import TypeRegistry, type_name
