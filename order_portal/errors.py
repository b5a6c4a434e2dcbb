"""Domain errors raised by the order and contract services.

Route handlers in :mod:`order_portal.main` turn these into HTTP responses.
"""


class PortalError(Exception):
    """Base class for errors raised by portal services."""


class OrderNotFound(PortalError):
    pass


class ContractNotFound(PortalError):
    pass


class ContractAlreadySigned(PortalError):
    """The contract has already moved to ``signed``; it cannot be written again."""


class StageError(PortalError):
    """The order is not in a stage that allows the requested action."""


class InvalidContractData(PortalError):
    """Contract form data or a submitted PDF could not be decoded."""


class TemplateLoadError(PortalError):
    """A contract template could not be fetched or parsed."""


class ImageEmbedError(PortalError):
    """A signature image is not a decodable raster image."""
