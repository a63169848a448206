"""Error taxonomy for the liquidity lock vault.

Every error carries a stable ``code`` so calling tooling can branch on the cause
(e.g. "try again later" vs "fix your input") without parsing messages.
"""


class LiquidVaultError(Exception):
    """Base class for all vault errors."""

    code = "liquid_vault_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)


class InputError(LiquidVaultError):
    code = "input_error"


class StateError(LiquidVaultError):
    code = "state_error"


class TimingError(LiquidVaultError):
    code = "timing_error"


class ResourceError(LiquidVaultError):
    code = "resource_error"


class AccessError(LiquidVaultError):
    code = "access_error"


# Input errors


class ZeroValueInput(InputError):
    code = "zero_value_input"


class ZeroAmount(InputError):
    code = "zero_amount"


class ArrayLengthMismatch(InputError):
    code = "array_length_mismatch"


class ZeroAddress(InputError):
    code = "zero_address"


class InvalidIterations(InputError):
    code = "invalid_iterations"


class FixedPointOverflow(InputError):
    code = "fixed_point_overflow"


# State errors


class NotSeeded(StateError):
    code = "not_seeded"


class AlreadySeeded(StateError):
    code = "already_seeded"


class PurchasesDisabled(StateError):
    code = "purchases_disabled"


class BatchInsertionClosed(StateError):
    code = "batch_insertion_closed"


class NothingToClaim(StateError):
    code = "nothing_to_claim"


class ReservesUnavailable(StateError):
    code = "reserves_unavailable"


class ConfigNotCaptured(StateError):
    code = "config_not_captured"


class InvalidRescueState(StateError):
    code = "invalid_rescue_state"


class ReentrantCall(StateError):
    code = "reentrant_call"


# Timing errors


class StillLocked(TimingError):
    code = "still_locked"


class OracleNotYetUpdated(TimingError):
    code = "oracle_not_yet_updated"


class OracleUpdatePeriodNotElapsed(TimingError):
    code = "oracle_update_period_not_elapsed"


# Resource errors


class InsufficientVaultTokenBalance(ResourceError):
    code = "insufficient_vault_token_balance"


class InsufficientPoolBalance(ResourceError):
    code = "insufficient_pool_balance"


class TransferFailed(ResourceError):
    code = "transfer_failed"


# Access errors


class AccessDenied(AccessError):
    code = "access_denied"
