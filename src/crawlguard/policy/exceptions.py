"""
Errors for misuse of the policy layer.

Classification never raises. These mark caller mistakes, a missing or
malformed site policy, which retrying will not fix.
"""


class PolicyError(Exception):
    """Base class for site policy errors."""


class MissingSitePolicyError(PolicyError):
    """
    decide_action() was called without a SiteMonetizationPolicy.

    Attributes:
        received: Type name of what was passed instead
    """

    def __init__(self, received: object = None):
        self.received = type(received).__name__
        super().__init__(
            f"A SiteMonetizationPolicy is required to decide an action "
            f"(got {self.received})"
        )


class InvalidSitePolicyError(PolicyError):
    """
    A site record has a value no policy can be built from.

    Attributes:
        message: What is wrong
        field: Policy field at fault, if known
        value: Rejected value, if known
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: object | None = None,
    ):
        self.message = message
        self.field = field
        self.value = value

        if field is None:
            text = message
        elif value is None:
            text = f"{field}: {message}"
        else:
            text = f"{field}: {message}, got {value!r}"
        super().__init__(text)
