from __future__ import annotations


class MintDetectorError(Exception):
    pass


class StartupError(MintDetectorError):
    pass


class GatewayClientError(MintDetectorError):
    pass


class TransportError(GatewayClientError):
    """The gateway process could not be reached or did not answer in time."""


class GatewayError(GatewayClientError):
    """The gateway answered but reported ``success: false``."""


class MalformedResponseError(GatewayClientError):
    pass


class RiskCheckFailure(MintDetectorError):
    pass
