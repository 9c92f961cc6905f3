# vanishchat/core/errors.py


class ChatError(Exception):
    """Base class for every failure raised by the message lifecycle."""


class ValidationError(ChatError):
    """A client event was malformed. Reported to the sender only."""


class CryptoError(ChatError):
    """Encryption or decryption failed."""


class MalformedEnvelope(CryptoError):
    """The stored envelope does not have the ``iv:ciphertext`` shape."""


class DecryptionError(CryptoError):
    """Authentication failed or the key could not be used."""


class StorageError(ChatError):
    """The message store could not complete a read or write."""


class ChannelError(ChatError):
    """Delivering an event to one subscriber channel failed."""
