class ChannelError(Exception):
    """ Indicates an error condition with a channel's transport. """


class SendError(ChannelError):
    """ A value could not be serialized or written to the conduit. The channel carries on sending. """

    def __init__(self, error: BaseException):
        super().__init__("send error: %s" % error)
        self.error = error


class RecvError(ChannelError):
    """ A frame could not be read or decoded, or named a type that is not registered. """

    def __init__(self, error):
        super().__init__("recv error: %s" % error)
        self.error = error


class ChannelClosedError(ChannelError):
    """ The channel has been closed: nothing more can be sent, and everything received has been taken. """


class RegistryError(ValueError):
    """ A type registry was built with a duplicate name or type. """


class ContractViolationError(TypeError):
    """
    The caller used the channel in a way it promised not to. This is a programming defect rather than a
    transport condition, so it is not a ChannelError.
    """


class UnregisteredTypeError(ContractViolationError):
    """ A value was sent whose type was never declared to the channel. """

    def __init__(self, value):
        super().__init__("type not allowed: %s" % type(value).__qualname__)
        self.value = value
