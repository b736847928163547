"""Domain-specific exceptions"""


class DisputeReportError(Exception):
    """Base exception for a failed report run"""

    pass


class FetchError(DisputeReportError):
    """Billing provider was unreachable or rejected the query"""

    pass


class RenderError(DisputeReportError):
    """CSV artifact could not be built"""

    pass


class DeliveryError(DisputeReportError):
    """Task tracker or mail transport failed"""

    pass
