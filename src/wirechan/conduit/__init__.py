"""
The conduit package provides an abstraction of a bi-directional byte stream.
A channel takes ownership of a conduit and reads from its input on one thread while
writing to its output on another.
"""
