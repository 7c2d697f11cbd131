"""
The channel protocol: framing typed values onto a conduit, with a background thread for each direction.
"""
