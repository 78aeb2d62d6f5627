class OakError(Exception):
    """Base class for OAK-specific errors."""


# Structure layer: the value graph holds something that cannot round trip
class UnsupportedValueError(OakError, TypeError):
    pass


# Any string which is not a valid OAK string, however it got that way
class MalformedStringError(OakError, ValueError):
    pass


class MissingKeyError(MalformedStringError):
    """An oak_4 string names a key that the supplied key chain cannot provide."""


# Caller configuration
class InvalidOptionError(OakError, ValueError):
    pass


class InvalidCredentialError(InvalidOptionError):
    pass
