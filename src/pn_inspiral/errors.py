from __future__ import annotations


class PNConfigurationError(ValueError):
    """Invalid input detected before any integration starts."""


class UnsupportedApproximantError(PNConfigurationError):
    pass


class NonPositiveMassError(PNConfigurationError):
    pass


class UnphysicalSpinError(PNConfigurationError):
    pass


class InitialVelocityError(PNConfigurationError):
    pass


class TidalAssignmentError(PNConfigurationError):
    pass


class FrequencyOrderingError(PNConfigurationError):
    pass


class SamplingOptionsError(PNConfigurationError):
    pass


class StateVectorLengthError(PNConfigurationError):
    pass


class UnknownFieldError(PNConfigurationError, KeyError):
    # KeyError would otherwise repr() the message
    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class PNOrderMismatchError(PNConfigurationError):
    pass


class NegativeExponentError(PNConfigurationError):
    pass


class ModeRangeError(PNConfigurationError):
    pass


class InitialConditionError(RuntimeError):
    """The right-hand side is already non-finite at the initial condition."""
