"""Error types raised by the extender core."""

from __future__ import annotations


class ExtenderError(Exception):
    """Base class for extender errors."""


class PodDecodeError(ExtenderError):
    """A watched or posted object cannot be interpreted as a pod."""


class NodeDecodeError(ExtenderError):
    """A node in a callback payload cannot be interpreted."""


class QuantityError(ExtenderError):
    """A resource quantity string could not be parsed."""


class IndexLookupError(ExtenderError):
    """The pod-node index cannot produce pods for a node."""


class EnvelopeError(ExtenderError):
    """A scheduler callback body does not match the extender protocol."""


class BindNotSupportedError(ExtenderError):
    """Binding was routed to an extender that does not bind."""


class StartupError(ExtenderError):
    """Fatal condition while bringing the service up."""
