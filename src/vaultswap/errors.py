"""Error taxonomy for the swap pipeline.

Every pipeline failure is a SwapError carrying the step that raised it, so a
caller can tell configuration problems apart from collaborator failures.
"""

from typing import Optional


class ConfigurationError(Exception):
    """Raised at load time when required configuration is missing or invalid."""
    pass


class SwapError(Exception):
    """Base class for failures inside the swap pipeline."""

    step: str = "swap"

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        if step is not None:
            self.step = step

    def __str__(self) -> str:
        return f"[{self.step}] {super().__str__()}"


class InvalidAmount(SwapError):
    """Amount is negative, not finite, or more precise than the token allows."""
    step = "amount"


class NoRouteFound(SwapError):
    """The routing collaborator found no viable path."""
    step = "route"


class RoutingUnavailable(SwapError):
    """The routing collaborator could not be reached or answered with an error."""
    step = "route"


class ApprovalFailed(SwapError):
    """The token approval was rejected or never confirmed."""
    step = "approval"


class FeeDataUnavailable(SwapError):
    """Network fee data could not be read from the chain."""
    step = "fees"


class MissingRouteParameters(SwapError):
    """A route came back without executable call data."""
    step = "assemble"


class SubmissionFailed(SwapError):
    """The signer returned no transaction reference or rejected the request."""
    step = "submit"
