"""
Key/Model Selection Policy

Decides which (model, API key) pair to try next within one generation
request. The policy itself holds no state: every decision takes a
RotationState and returns a new one, so rotation never leaks between
requests.

Routing by failure kind:
    INVALID_CREDENTIAL  -> key revoked for every model, next key
    RATE_LIMITED        -> next key, same model
    PERMISSION_DENIED   -> next key, same model
    TRANSIENT           -> next key, same model
    MODEL_UNAVAILABLE   -> next model, back to the first usable key
"""

from dataclasses import dataclass, field, replace
from typing import FrozenSet, Optional, Sequence, Tuple

from videlix.core.constants import ProviderErrorKind
from videlix.core.exceptions import LLMProviderError


@dataclass(frozen=True)
class Attempt:
    """One (model, credential) pair to try."""
    model_index: int
    credential_index: int
    model: str
    credential: str = field(repr=False)


@dataclass(frozen=True)
class AttemptRecord:
    model: str
    credential_index: int
    kind: Optional[ProviderErrorKind]  # None on success


@dataclass(frozen=True)
class RotationState:
    """Where the rotation stands for one request."""
    model_index: int = 0
    credential_cursor: int = 0
    revoked: FrozenSet[int] = frozenset()
    history: Tuple[AttemptRecord, ...] = ()

    @property
    def attempts(self) -> int:
        return len(self.history)


def classify_failure(error: BaseException) -> ProviderErrorKind:
    """Kind of a failed attempt; anything but a provider error is transient."""
    if isinstance(error, LLMProviderError):
        return error.kind
    return ProviderErrorKind.TRANSIENT


class KeyModelPolicy:
    """
    Stateless rotation over ordered models (outer) and credentials (inner).

    Args:
        models: Model identifiers, most capable first
        credentials: Caller-supplied API keys in preference order
    """

    def __init__(self, models: Sequence[str], credentials: Sequence[str]):
        if not models:
            raise ValueError("At least one model is required")
        self.models = tuple(models)
        self.credentials = tuple(credentials)

    def initial_state(self) -> RotationState:
        return RotationState()

    def next_attempt(self, state: RotationState) -> Optional[Attempt]:
        """
        Next pair to try, or None once every model is used up.

        Revoked credentials are skipped for all models. Each model walks the
        credential list once, so no pair is offered twice.
        """
        model_index = state.model_index
        cursor = state.credential_cursor

        while model_index < len(self.models):
            while cursor < len(self.credentials) and cursor in state.revoked:
                cursor += 1
            if cursor < len(self.credentials):
                return Attempt(
                    model_index=model_index,
                    credential_index=cursor,
                    model=self.models[model_index],
                    credential=self.credentials[cursor],
                )
            model_index += 1
            cursor = 0

        return None

    def record(
        self,
        state: RotationState,
        attempt: Attempt,
        kind: Optional[ProviderErrorKind]
    ) -> RotationState:
        """State after `attempt` finished with failure `kind` (None = success)."""
        history = state.history + (AttemptRecord(attempt.model, attempt.credential_index, kind),)

        if kind is None:
            return replace(state, history=history)

        kind = ProviderErrorKind(kind)
        if kind == ProviderErrorKind.MODEL_UNAVAILABLE:
            return replace(
                state,
                model_index=attempt.model_index + 1,
                credential_cursor=0,
                history=history,
            )

        revoked = state.revoked
        if kind == ProviderErrorKind.INVALID_CREDENTIAL:
            revoked = revoked | {attempt.credential_index}

        return replace(
            state,
            model_index=attempt.model_index,
            credential_cursor=attempt.credential_index + 1,
            revoked=revoked,
            history=history,
        )

    def max_attempts(self) -> int:
        return len(self.models) * len(self.credentials)
