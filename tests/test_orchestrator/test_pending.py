"""Tests for PendingConfirmationStore."""

import pytest

from workspace_assistant.analysis import Intent, RiskAssessment, RiskLevel
from workspace_assistant.orchestrator import (
    PendingCall,
    PendingConfirmation,
    PendingConfirmationStore,
)
from workspace_assistant.tools import InvocationContext


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000

    def __call__(self) -> float:
        return self.now


def _pending(conversation_id: str) -> PendingConfirmation:
    return PendingConfirmation(
        conversation_id=conversation_id,
        instruction="Delete the branch",
        context=InvocationContext(workspace_id="ws-1", user_id="user-1"),
        calls=[PendingCall("c1", "GITHUB_DELETE_BRANCH", {"branch": "old"})],
        assessment=RiskAssessment(
            requires_confirmation=True,
            risk_level=RiskLevel.CRITICAL,
            impact_description="Delete branch old",
        ),
        intent=Intent.internal_fallback(),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> PendingConfirmationStore:
    return PendingConfirmationStore(ttl_seconds=60, clock=clock)


class TestPendingConfirmationStore:
    """Test PendingConfirmationStore."""

    def test_put_and_get(self, store: PendingConfirmationStore) -> None:
        store.put(_pending("conv-1"))
        pending = store.get("conv-1")
        assert pending is not None
        assert pending.created_at == 1000
        assert store.get("conv-2") is None

    def test_put_replaces_earlier_record(self, store: PendingConfirmationStore) -> None:
        store.put(_pending("conv-1"))
        replacement = _pending("conv-1")
        replacement.instruction = "Something else"
        store.put(replacement)
        assert len(store) == 1
        assert store.get("conv-1").instruction == "Something else"  # type: ignore[union-attr]

    def test_pop_consumes(self, store: PendingConfirmationStore) -> None:
        store.put(_pending("conv-1"))
        assert store.pop("conv-1") is not None
        assert store.pop("conv-1") is None
        assert len(store) == 0

    def test_expired_record_dropped(
        self, store: PendingConfirmationStore, clock: FakeClock
    ) -> None:
        store.put(_pending("conv-1"))
        clock.now += 60
        assert store.get("conv-1") is not None
        clock.now += 1
        assert store.get("conv-1") is None
        assert len(store) == 0

    def test_clear_expired(self, store: PendingConfirmationStore, clock: FakeClock) -> None:
        store.put(_pending("conv-1"))
        clock.now += 30
        store.put(_pending("conv-2"))
        clock.now += 40

        assert store.clear_expired() == 1
        assert store.get("conv-1") is None
        assert store.get("conv-2") is not None

    def test_empty_store(self, store: PendingConfirmationStore) -> None:
        assert len(store) == 0
        assert store.clear_expired() == 0
