"""
The type registry maps the names written on the wire to the Python types they stand for.
Outgoing values are tagged with the name of their type; incoming names are turned back into
a fresh instance of the type, which the payload is decoded into.
"""
import dataclasses
import functools
import logging
import typing
from abc import abstractmethod
from collections.abc import Mapping

from wirechan.protocol.errors import RegistryError

logger = logging.getLogger(__name__)

builtin_types = (str, int, float, bool, list, dict, type(None))


def prototype_type(prototype) -> type:
    """ a prototype is either an example value or the type itself. """
    return prototype if isinstance(prototype, type) else type(prototype)


def type_name(prototype) -> str:
    """
    Derives the wire name for a prototype's type.
    >>> type_name("strings")
    'str'
    >>> type_name(RegistryError)
    'wirechan.protocol.errors.RegistryError'
    """
    cls = prototype_type(prototype)
    if cls in builtin_types:
        return cls.__name__
    return "%s.%s" % (cls.__module__, cls.__qualname__)


class TypeDescriptor:
    """
    Describes one registered type. Identity is by the exact runtime type, so a subclass
    does not match the descriptor of its base.
    """

    def __init__(self, cls: type):
        self.cls = cls

    def matches(self, value) -> bool:
        return type(value) is self.cls

    @abstractmethod
    def new_instance(self):
        """ creates a zero-valued instance, ready to receive decoded fields. """
        raise NotImplementedError()

    @abstractmethod
    def encode(self, value):
        """ converts a value of this type to plain data the codec can serialize. """
        raise NotImplementedError()

    @abstractmethod
    def decode_into(self, instance, data):
        """
        fills the fresh instance from plain data read by the codec.
        :return: the decoded value. Immutable types return a new value rather than the instance.
        """
        raise NotImplementedError()

    def __repr__(self):
        return "%s(%s)" % (type(self).__name__, self.cls.__qualname__)


class BuiltinDescriptor(TypeDescriptor):
    """ strings, numbers, booleans, lists, dicts and None travel as themselves. """

    def new_instance(self):
        return self.cls()

    def encode(self, value):
        return value

    def decode_into(self, instance, data):
        if self.cls is float and type(data) is int:
            return float(data)
        if type(data) is not self.cls:
            raise TypeError("expected %s, got %s" % (self.cls.__name__, type(data).__name__))
        if isinstance(instance, list):
            instance.extend(data)
            return instance
        if isinstance(instance, dict):
            instance.update(data)
            return instance
        return data


class ObjectDescriptor(TypeDescriptor):
    """ plain objects travel as a dict of their attributes. """

    def new_instance(self):
        return self.cls.__new__(self.cls)

    def encode(self, value):
        return {name: to_plain(item) for name, item in vars(value).items()}

    def decode_into(self, instance, data):
        if not isinstance(data, dict):
            raise TypeError("expected an object for %s, got %s" % (self.cls.__qualname__, type(data).__name__))
        hints = type_hints(self.cls)
        instance.__dict__.update({name: from_plain(hints.get(name), item) for name, item in data.items()})
        return instance


class DataclassDescriptor(ObjectDescriptor):
    """
    dataclasses travel as a dict of their fields. Fields missing from the data take their
    declared default; unknown keys are ignored.
    """

    def new_instance(self):
        instance = super().new_instance()
        for field in dataclasses.fields(self.cls):
            if field.default is not dataclasses.MISSING:
                object.__setattr__(instance, field.name, field.default)
            elif field.default_factory is not dataclasses.MISSING:
                object.__setattr__(instance, field.name, field.default_factory())
        return instance

    def encode(self, value):
        return to_plain(value)

    def decode_into(self, instance, data):
        if not isinstance(data, dict):
            raise TypeError("expected an object for %s, got %s" % (self.cls.__qualname__, type(data).__name__))
        hints = type_hints(self.cls)
        for field in dataclasses.fields(self.cls):
            if field.name in data:
                object.__setattr__(instance, field.name, from_plain(hints.get(field.name), data[field.name]))
            elif not hasattr(instance, field.name):
                raise ValueError("missing field '%s' for %s" % (field.name, self.cls.__qualname__))
        return instance


def describe(prototype) -> TypeDescriptor:
    """ creates the descriptor suited to a prototype's type. """
    cls = prototype_type(prototype)
    if cls in builtin_types:
        return BuiltinDescriptor(cls)
    if dataclasses.is_dataclass(cls):
        return DataclassDescriptor(cls)
    return ObjectDescriptor(cls)


def to_plain(value):
    """ converts dataclasses to dicts of their fields, at any depth within lists, tuples and dicts. """
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {field.name: to_plain(getattr(value, field.name)) for field in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: to_plain(item) for key, item in value.items()}
    return value


@functools.lru_cache(maxsize=None)
def type_hints(cls) -> dict:
    """
    The resolved annotations of a class, used to rebuild nested values.
    Annotations that cannot be resolved are kept as written, and the values they describe are
    decoded as plain data.
    """
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        logger.debug("unresolved type hints for %s: %s", cls.__qualname__, e)
        return dict(getattr(cls, "__annotations__", {}))


def from_plain(hint, data):
    """
    Rebuilds a value from plain data, guided by a type hint. Dataclasses are rebuilt at any depth
    within List, Tuple, Dict and Optional hints. Anything else is returned as it was read.
    """
    if data is None:
        return None
    if isinstance(hint, type) and dataclasses.is_dataclass(hint):
        descriptor = DataclassDescriptor(hint)
        return descriptor.decode_into(descriptor.new_instance(), data)
    if hint is tuple and isinstance(data, list):
        return tuple(data)
    origin = typing.get_origin(hint)
    args = typing.get_args(hint)
    if origin is list and args and isinstance(data, list):
        return [from_plain(args[0], item) for item in data]
    if origin is tuple and isinstance(data, list):
        if len(args) == 2 and args[1] is Ellipsis:
            hints = [args[0]] * len(data)
        else:
            hints = list(args) + [None] * (len(data) - len(args))
        return tuple(from_plain(item_hint, item) for item_hint, item in zip(hints, data))
    if origin is dict and len(args) == 2 and isinstance(data, dict):
        return {key: from_plain(args[1], item) for key, item in data.items()}
    if origin is typing.Union:
        candidates = [arg for arg in args if arg is not type(None)]
        if len(candidates) == 1:
            return from_plain(candidates[0], data)
    return data


class TypeRegistry:
    """
    The names and types a channel is allowed to carry.
    Built once when the channel is constructed, and not changed after that.
    """

    def __init__(self):
        self._by_name = {}

    @classmethod
    def from_types(cls, allowed):
        """
        Builds a registry.
        :param allowed: either a sequence of prototypes, named after their type, or a mapping
            of name to prototype.
        """
        registry = cls()
        if isinstance(allowed, Mapping):
            for name, prototype in allowed.items():
                registry.register(name, prototype)
        else:
            for prototype in allowed:
                registry.register(type_name(prototype), prototype)
        return registry

    def register(self, name: str, prototype):
        if name in self._by_name:
            raise RegistryError("type name already registered: %s" % name)
        cls = prototype_type(prototype)
        for other, descriptor in self._by_name.items():
            if descriptor.cls is cls:
                raise RegistryError("%s is already registered as '%s'" % (cls.__qualname__, other))
        self._by_name[name] = describe(prototype)

    def resolve_by_name(self, name):
        """
        :return: the descriptor registered under name, or None
        """
        if not isinstance(name, str):
            return None
        return self._by_name.get(name)

    def resolve_by_value(self, value):
        """
        :return: the name the value's type is registered under, or None
        """
        for name, descriptor in self._by_name.items():
            if descriptor.matches(value):
                return name
        return None

    def new_instance(self, descriptor: TypeDescriptor):
        return descriptor.new_instance()

    def names(self):
        return tuple(self._by_name)

    def __len__(self):
        return len(self._by_name)

    def __contains__(self, name):
        return name in self._by_name
