"""Error types for the billing statement pipeline"""


class BillingError(Exception):
    """Base class for pipeline errors."""


class FormatError(BillingError, ValueError):
    """A CSV byte stream could not be decoded."""


class RenderError(BillingError, RuntimeError):
    """The page renderer failed to produce a document for one patient."""
